"""Configuration management from environment variables."""
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config(BaseModel):
    """Application configuration.

    Immutable: components receive an instance at construction time and
    overrides go through ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    # Store
    base_url: str = "https://www.amazon.com"
    payments_url: str = "https://www.amazon.com/cpe/yourpayments/transactions"
    order_url_pattern: str = "https://www.amazon.com/gp/your-account/order-details?orderID={order_id}"

    # Scraper
    headless: bool = True
    timeout_ms: int = 30000
    delay_between_requests_ms: int = 2000
    max_retries: int = 3
    workers: int = 3
    max_pages: int = 10
    default_days: int = 90
    login_timeout_ms: int = 120000

    # Output
    data_dir: Path = DATA_DIR
    output_dir: Path = PROJECT_ROOT / "output"
    screenshots_dir: Path = DATA_DIR / "screenshots"
    spool_dir: Path = DATA_DIR / "spool"
    state_db: Path = DATA_DIR / "state.db"
    session_state_path: Path = DATA_DIR / "session.json"

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Build configuration from environment variables (and .env)."""
        data_dir = Path(os.getenv("DATA_DIR", str(DATA_DIR)))
        base_url = os.getenv("BASE_URL", "https://www.amazon.com")
        return cls(
            base_url=base_url,
            payments_url=os.getenv("PAYMENTS_URL", f"{base_url}/cpe/yourpayments/transactions"),
            order_url_pattern=os.getenv(
                "ORDER_URL_PATTERN",
                f"{base_url}/gp/your-account/order-details?orderID={{order_id}}",
            ),
            headless=_env_bool("HEADLESS", True),
            timeout_ms=int(os.getenv("TIMEOUT_MS", "30000")),
            delay_between_requests_ms=int(os.getenv("DELAY_BETWEEN_REQUESTS_MS", "2000")),
            max_retries=int(os.getenv("MAX_RETRIES", "3")),
            workers=int(os.getenv("WORKERS", "3")),
            max_pages=int(os.getenv("MAX_PAGES", "10")),
            default_days=int(os.getenv("DEFAULT_DAYS", "90")),
            login_timeout_ms=int(os.getenv("LOGIN_TIMEOUT_MS", "120000")),
            data_dir=data_dir,
            output_dir=Path(os.getenv("OUTPUT_DIR", str(PROJECT_ROOT / "output"))),
            screenshots_dir=Path(os.getenv("SCREENSHOTS_DIR", str(data_dir / "screenshots"))),
            spool_dir=Path(os.getenv("SPOOL_DIR", str(data_dir / "spool"))),
            state_db=Path(os.getenv("STATE_DB", str(data_dir / "state.db"))),
            session_state_path=Path(os.getenv("SESSION_STATE", str(data_dir / "session.json"))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate_values(self) -> None:
        """Validate configuration values."""
        errors = []
        if self.workers < 1:
            errors.append("WORKERS must be >= 1")
        if self.max_pages < 1:
            errors.append("MAX_PAGES must be >= 1")
        if self.timeout_ms <= 0:
            errors.append("TIMEOUT_MS must be > 0")
        if self.delay_between_requests_ms < 0:
            errors.append("DELAY_BETWEEN_REQUESTS_MS must be >= 0")
        if self.max_retries < 1:
            errors.append("MAX_RETRIES must be >= 1")
        if "{order_id}" not in self.order_url_pattern:
            errors.append("ORDER_URL_PATTERN must contain {order_id}")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    def ensure_dirs(self) -> None:
        """Create output directories if they don't exist."""
        for path in (self.data_dir, self.output_dir, self.screenshots_dir, self.spool_dir):
            path.mkdir(parents=True, exist_ok=True)
        self.state_db.parent.mkdir(parents=True, exist_ok=True)
