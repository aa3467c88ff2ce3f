"""Result aggregation and run snapshot persistence."""
import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Iterable, Optional

import orjson

from txscraper.errors import SnapshotWriteError
from txscraper.parse.models import DateRange, DetailedRecord, RunMetadata, RunSnapshot

logger = logging.getLogger(__name__)


def date_range_for(days: int, today: Optional[date] = None) -> DateRange:
    """Date range covering the last ``days`` days, ISO formatted."""
    end = today or datetime.now().date()
    start = end - timedelta(days=days)
    return DateRange(start=start.isoformat(), end=end.isoformat())


def snapshot_filename(output_name: str, when: Optional[datetime] = None) -> str:
    stamp = (when or datetime.now()).strftime("%Y-%m-%d-%H-%M")
    return f"{output_name}-{stamp}.json"


class ResultAggregator:
    """Merges worker chunks into one RunSnapshot and writes it once."""

    def __init__(self, data_dir: Path, output_name: str = "transactions"):
        self.data_dir = data_dir
        self.output_name = output_name

    def merge(
        self,
        chunks: Iterable[list[DetailedRecord]],
        date_range: DateRange,
        generated_at: Optional[str] = None,
    ) -> RunSnapshot:
        """Flatten chunks in order; totalAmount is the sum of netAmount, rounded to cents."""
        records = [record for chunk in chunks for record in chunk]
        metadata = RunMetadata(
            date_range=date_range,
            total_records=len(records),
            total_amount=round(sum(record.net_amount for record in records), 2),
            scraped_at=datetime.now(timezone.utc).isoformat(),
        )
        if generated_at:
            metadata = metadata.model_copy(update={"generated_at": generated_at})
        return RunSnapshot(metadata=metadata, records=records)

    def persist(self, snapshot: RunSnapshot, filename: Optional[str] = None) -> Path:
        """Write the snapshot; any failure is fatal to the run."""
        path = self.data_dir / (filename or snapshot_filename(self.output_name))
        if filename is None:
            path = self._unused_path(path)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as f:
                f.write(orjson.dumps(snapshot.to_json(), option=orjson.OPT_INDENT_2))
        except (OSError, TypeError) as e:
            raise SnapshotWriteError(f"Could not write snapshot {path}: {e}") from e
        logger.info(f"Data saved to {path}")
        return path

    @staticmethod
    def _unused_path(path: Path) -> Path:
        # Two runs within the same minute must not overwrite each other
        candidate = path
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{path.stem}-{counter}{path.suffix}")
            counter += 1
        return candidate
