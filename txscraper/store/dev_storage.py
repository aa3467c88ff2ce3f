"""DEV mode storage: save rendered pages and extractions to data/dev/ for inspection."""
import gzip
import logging
from pathlib import Path
from typing import Any

import orjson

from txscraper.parse.redact import redact_json

logger = logging.getLogger(__name__)


class DevStorage:
    """Stores per-order debug output in DEV mode."""

    def __init__(self, data_dir: Path):
        self.dev_dir = data_dir / "dev"
        self.dev_dir.mkdir(parents=True, exist_ok=True)

    def save_order(
        self,
        order_id: str,
        extracted: dict[str, Any],
        html_content: str | None = None,
        strategies: dict[str, str | None] | None = None,
    ) -> Path:
        """Save extracted.json (redacted), which strategy won per field, and page.html.gz."""
        order_dir = self.dev_dir / order_id
        order_dir.mkdir(exist_ok=True)

        payload = {"record": extracted, "strategies": strategies or {}}
        extracted_path = order_dir / "extracted.json"
        with open(extracted_path, "wb") as f:
            f.write(orjson.dumps(redact_json(payload), option=orjson.OPT_INDENT_2))
        logger.info(f"[DEV] Saved extracted data to {extracted_path}")

        if html_content:
            html_path = order_dir / "page.html.gz"
            with gzip.open(html_path, "wt", encoding="utf-8") as f:
                f.write(html_content)
            logger.debug(f"[DEV] Saved HTML to {html_path}")

        return order_dir
