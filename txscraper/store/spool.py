"""Disk journal of completed records, written before the run snapshot."""
import logging
from pathlib import Path
from typing import Iterator

import aiofiles
import orjson

from txscraper.parse.models import DetailedRecord

logger = logging.getLogger(__name__)


class SpoolManager:
    """Manages per-run JSONL journal files."""

    def __init__(self, spool_dir: Path):
        self.spool_dir = spool_dir
        self.spool_dir.mkdir(parents=True, exist_ok=True)

    def _get_spool_file(self, run_id: str) -> Path:
        """Get journal file path for a run."""
        return self.spool_dir / f"run_{run_id}.jsonl"

    async def write_record(self, record: DetailedRecord, run_id: str) -> None:
        """Append a record to the run's journal."""
        spool_file = self._get_spool_file(run_id)
        async with aiofiles.open(spool_file, "ab") as f:
            await f.write(orjson.dumps(record.to_json()) + b"\n")

    async def read_run(self, run_id: str) -> list[dict]:
        """Read all records from one run's journal."""
        return await self.read_file(self._get_spool_file(run_id))

    async def read_file(self, spool_file: Path) -> list[dict]:
        if not spool_file.exists():
            return []

        records = []
        async with aiofiles.open(spool_file, "rb") as f:
            async for line in f:
                if not line.strip():
                    continue
                try:
                    records.append(orjson.loads(line))
                except orjson.JSONDecodeError as e:
                    # A torn last line after a hard kill
                    logger.warning(f"Error reading journal line in {spool_file.name}: {e}")
                    continue

        return records

    async def delete_run(self, run_id: str) -> None:
        """Delete a run's journal after the snapshot was written."""
        spool_file = self._get_spool_file(run_id)
        if spool_file.exists():
            spool_file.unlink()

    def list_spool_files(self) -> Iterator[Path]:
        """List all journal files."""
        return self.spool_dir.glob("run_*.jsonl")
