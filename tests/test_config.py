"""Tests for configuration and CLI overrides."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from txscraper.config import Config
from txscraper.main import build_config, parse_args


def test_from_env(monkeypatch, tmp_path):
    """Environment variables feed every setting; derived paths follow DATA_DIR."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "d"))
    monkeypatch.setenv("WORKERS", "5")
    monkeypatch.setenv("HEADLESS", "false")
    monkeypatch.setenv("BASE_URL", "https://www.amazon.co.uk")
    monkeypatch.delenv("PAYMENTS_URL", raising=False)
    monkeypatch.delenv("SCREENSHOTS_DIR", raising=False)
    config = Config.from_env()

    assert config.workers == 5
    assert config.headless is False
    assert config.payments_url == "https://www.amazon.co.uk/cpe/yourpayments/transactions"
    assert config.screenshots_dir == Path(tmp_path / "d" / "screenshots")


def test_config_is_frozen():
    """Components cannot mutate the shared configuration."""
    config = Config()
    with pytest.raises(ValidationError):
        config.workers = 9


def test_validate_values_lists_all_errors():
    """Every invalid value is reported at once."""
    config = Config(workers=0, max_pages=0, order_url_pattern="https://example.com/order")
    with pytest.raises(ValueError) as excinfo:
        config.validate_values()

    message = str(excinfo.value)
    assert "WORKERS" in message
    assert "MAX_PAGES" in message
    assert "ORDER_URL_PATTERN" in message


def test_defaults_are_valid():
    """The default configuration passes validation."""
    Config().validate_values()


def test_cli_overrides():
    """CLI flags override the environment configuration."""
    args = parse_args(["--workers", "4", "--headed", "--login-timeout", "300"])
    config = build_config(args, base=Config())

    assert config.workers == 4
    assert config.headless is False
    assert config.login_timeout_ms == 300_000


def test_dev_mode_forces_one_worker():
    """--dev runs a single worker at DEBUG level."""
    args = parse_args(["--dev", "--workers", "6"])
    config = build_config(args, base=Config())

    assert config.workers == 1
    assert config.log_level == "DEBUG"


def test_cli_defaults():
    """Without flags the run resumes and writes transactions-*.json."""
    args = parse_args([])

    assert args.no_resume is False
    assert args.output == "transactions"
    assert args.days is None
