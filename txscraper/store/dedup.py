"""Dedup store: which orders were already fully processed, across runs."""
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional

import orjson

from txscraper.config import Config
from txscraper.parse.models import RecordRef
from txscraper.store.spool import SpoolManager
from txscraper.store.state import StateDB

logger = logging.getLogger(__name__)

ARTIFACT_NAME_RE = re.compile(r"^order-(?P<order_id>.+)\.png$")


def artifact_name(order_id: str) -> str:
    return f"order-{order_id}.png"


class DedupIndex:
    """Set of completed order ids."""

    def __init__(self, ids: Optional[Iterable[str]] = None):
        self._ids: set[str] = set(ids or ())

    def __contains__(self, order_id: object) -> bool:
        return order_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self._ids)

    def add(self, order_id: str) -> None:
        self._ids.add(order_id)

    def update(self, ids: Iterable[str]) -> None:
        self._ids.update(ids)


def completed_ids_from_records(records: Iterable[dict]) -> set[str]:
    """Ids of complete, non-synthetic records from snapshot/journal JSON."""
    ids = set()
    for record in records:
        if not isinstance(record, dict):
            continue
        order_id = record.get("orderId")
        if not order_id:
            continue
        if record.get("syntheticId") or record.get("extraction") == "degraded":
            continue
        ids.add(order_id)
    return ids


class DedupStore:
    """Rebuilds the DedupIndex from everything a previous run left on disk."""

    def __init__(
        self,
        config: Config,
        state_db: Optional[StateDB] = None,
        spool: Optional[SpoolManager] = None,
    ):
        self.data_dir = config.data_dir
        self.screenshots_dir = config.screenshots_dir
        self.state_db = state_db
        self.spool = spool
        self.index = DedupIndex()

    async def load(self) -> DedupIndex:
        """Union ids from snapshots, artifacts, journals and the progress DB."""
        index = DedupIndex()

        from_snapshots = self._ids_from_snapshots()
        from_artifacts = self._ids_from_artifacts()
        from_journals = await self._ids_from_journals()
        from_state: set[str] = set()
        unfinished: set[str] = set()
        if self.state_db:
            from_state = await self.state_db.done_ids()
            # A screenshot is taken before the record is written, so it only
            # proves completion when the progress row agrees
            unfinished = await self.state_db.interrupted_ids() | await self.state_db.failed_ids()
            from_artifacts -= unfinished

        for ids in (from_snapshots, from_artifacts, from_journals, from_state):
            index.update(ids)

        logger.info(
            f"Dedup index loaded: {len(index)} ids "
            f"(snapshots={len(from_snapshots)}, artifacts={len(from_artifacts)}, "
            f"journals={len(from_journals)}, state={len(from_state)})"
        )

        retried = unfinished - set(index)
        if retried:
            logger.warning(
                f"{len(retried)} orders were interrupted or failed in a previous run "
                f"and will be re-extracted"
            )

        self.index = index
        return index

    def filter(self, refs: list[RecordRef]) -> list[RecordRef]:
        """Drop refs already in the index. Synthetic ids never match."""
        kept = [ref for ref in refs if ref.synthetic_id or ref.id not in self.index]
        skipped = len(refs) - len(kept)
        if skipped:
            logger.info(f"Skipping {skipped} already processed orders, {len(kept)} remaining")
        return kept

    def _ids_from_snapshots(self) -> set[str]:
        ids: set[str] = set()
        if not self.data_dir.exists():
            return ids
        for path in sorted(self.data_dir.glob("*.json")):
            data = self._read_snapshot(path)
            if data is None:
                continue
            ids |= completed_ids_from_records(data.get("transactions", []))
        return ids

    def _read_snapshot(self, path: Path) -> Optional[dict]:
        try:
            data = orjson.loads(path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as e:
            logger.warning(f"Skipping unreadable snapshot {path.name}: {e}")
            return None
        if not isinstance(data, dict) or not isinstance(data.get("transactions"), list):
            logger.debug(f"Ignoring {path.name}: not a run snapshot")
            return None
        return data

    def _ids_from_artifacts(self) -> set[str]:
        ids: set[str] = set()
        if not self.screenshots_dir.exists():
            return ids
        for path in self.screenshots_dir.glob("order-*.png"):
            match = ARTIFACT_NAME_RE.match(path.name)
            if match:
                ids.add(match.group("order_id"))
        return ids

    async def _ids_from_journals(self) -> set[str]:
        ids: set[str] = set()
        if self.spool is None:
            return ids
        for spool_file in self.spool.list_spool_files():
            ids |= completed_ids_from_records(await self.spool.read_file(spool_file))
        return ids
