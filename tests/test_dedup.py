"""Tests for the dedup store."""
import asyncio

import orjson

from txscraper.parse.models import DetailedRecord, RecordRef
from txscraper.store.dedup import DedupIndex, DedupStore
from txscraper.store.spool import SpoolManager
from txscraper.store.state import StateDB


def _snapshot(*records: dict) -> bytes:
    return orjson.dumps({"metadata": {"totalTransactions": len(records)}, "transactions": list(records)})


def _load(config, **kwargs) -> DedupIndex:
    return asyncio.run(DedupStore(config, **kwargs).load())


def test_ids_from_snapshots(config):
    """Complete records of earlier snapshots are in the index."""
    config.data_dir.mkdir(parents=True)
    (config.data_dir / "transactions-2024-07-01-10-00.json").write_bytes(
        _snapshot(
            {"orderId": "111-0000000-0000001", "extraction": "complete"},
            {"orderId": "111-0000000-0000002"},
        )
    )
    index = _load(config)

    assert "111-0000000-0000001" in index
    assert "111-0000000-0000002" in index


def test_degraded_and_synthetic_records_not_indexed(config):
    """Degraded records and synthetic ids are retried in the next run."""
    config.data_dir.mkdir(parents=True)
    (config.data_dir / "transactions-2024-07-01-10-00.json").write_bytes(
        _snapshot(
            {"orderId": "111-0000000-0000001", "extraction": "degraded"},
            {"orderId": "unknown-abc123", "syntheticId": True},
        )
    )
    assert len(_load(config)) == 0


def test_corrupt_snapshot_skipped(config):
    """An unreadable snapshot is skipped; other sources still load."""
    config.data_dir.mkdir(parents=True)
    (config.data_dir / "transactions-broken.json").write_bytes(b'{"transactions": [')
    (config.data_dir / "metrics.json").write_bytes(b'{"ok": 1}')
    (config.data_dir / "transactions-good.json").write_bytes(_snapshot({"orderId": "111-0000000-0000003"}))

    index = _load(config)
    assert set(index) == {"111-0000000-0000003"}


def test_ids_from_artifacts(config):
    """Every order-<id>.png marks the order as done."""
    config.screenshots_dir.mkdir(parents=True)
    (config.screenshots_dir / "order-112-0000000-0000001.png").write_bytes(b"png")
    (config.screenshots_dir / "notes.txt").write_text("ignore me")

    assert set(_load(config)) == {"112-0000000-0000001"}


def test_ids_from_journal_and_state(config):
    """Journal lines and ok rows of the progress DB are both sources."""

    async def scenario():
        spool = SpoolManager(config.spool_dir)
        state_db = StateDB(config.state_db)
        await state_db.initialize()
        await spool.write_record(DetailedRecord(id="113-0000000-0000001", amount=5.0), "prev")
        await spool.write_record(
            DetailedRecord.degraded(RecordRef(id="113-0000000-0000009", raw_amount=1.0)), "prev"
        )
        await state_db.mark_done("113-0000000-0000002", "prev")
        await state_db.mark_started("113-0000000-0000003", "prev")
        await state_db.mark_failed("113-0000000-0000004", "prev", "timeout")
        return await DedupStore(config, state_db=state_db, spool=spool).load()

    index = asyncio.run(scenario())
    assert set(index) == {"113-0000000-0000001", "113-0000000-0000002"}


def test_screenshot_of_unfinished_job_does_not_count(config):
    """A job killed or failed after its screenshot is dispatched again."""
    config.screenshots_dir.mkdir(parents=True)
    for order_id in ("113-0000000-0000009", "113-0000000-0000008", "113-0000000-0000007"):
        (config.screenshots_dir / f"order-{order_id}.png").write_bytes(b"png")

    async def scenario():
        state_db = StateDB(config.state_db)
        await state_db.initialize()
        await state_db.mark_started("113-0000000-0000009", "prev")
        await state_db.mark_failed("113-0000000-0000008", "prev", "timeout")
        store = DedupStore(config, state_db=state_db)
        await store.load()
        return store

    store = asyncio.run(scenario())
    refs = [RecordRef(id=order_id) for order_id in ("113-0000000-0000009", "113-0000000-0000008", "113-0000000-0000007")]

    assert set(store.index) == {"113-0000000-0000007"}
    assert [ref.id for ref in store.filter(refs)] == ["113-0000000-0000009", "113-0000000-0000008"]


def test_filter_excludes_indexed_ids(config):
    """Refs already in the index are removed; the rest keep their order."""
    store = DedupStore(config)
    store.index = DedupIndex({"111-1111111-1111111"})
    refs = [
        RecordRef(id="111-1111111-1111111", raw_amount=10),
        RecordRef(id="222-2222222-2222222", raw_amount=20),
    ]

    assert [ref.id for ref in store.filter(refs)] == ["222-2222222-2222222"]


def test_filter_is_idempotent_and_keeps_synthetic(config):
    """Filtering twice gives the same result; synthetic refs are never filtered."""
    store = DedupStore(config)
    store.index = DedupIndex({"111-1111111-1111111", "unknown-1"})
    refs = [
        RecordRef(id="111-1111111-1111111"),
        RecordRef(id="unknown-1", synthetic_id=True, raw_amount=3.0),
        RecordRef(id="333-3333333-3333333"),
    ]
    once = store.filter(refs)

    assert store.filter(once) == once
    assert [ref.id for ref in once] == ["unknown-1", "333-3333333-3333333"]
