"""Shared fixtures."""
import pytest

from txscraper.config import Config


@pytest.fixture
def config(tmp_path) -> Config:
    """Config rooted in a temporary data directory, no delays."""
    data_dir = tmp_path / "data"
    return Config(
        data_dir=data_dir,
        output_dir=tmp_path / "output",
        screenshots_dir=data_dir / "screenshots",
        spool_dir=data_dir / "spool",
        state_db=data_dir / "state.db",
        session_state_path=data_dir / "session.json",
        delay_between_requests_ms=0,
        workers=2,
    )
