"""Tests for the progress database and run journal."""
import asyncio
import os
import time

from txscraper.parse.models import DetailedRecord, Item
from txscraper.store.spool import SpoolManager
from txscraper.store.spool_cleanup import cleanup_spool
from txscraper.store.state import StateDB


def test_started_marker_reported_as_interrupted(tmp_path):
    """A job that started but never finished shows up as interrupted."""

    async def scenario():
        db = StateDB(tmp_path / "state.db")
        await db.initialize()
        await db.mark_started("111-0000000-0000001", "run1")
        await db.mark_started("111-0000000-0000002", "run1")
        await db.mark_done("111-0000000-0000002", "run1")
        return await db.interrupted_ids(), await db.done_ids()

    interrupted, done = asyncio.run(scenario())
    assert interrupted == {"111-0000000-0000001"}
    assert done == {"111-0000000-0000002"}


def test_failed_error_is_truncated(tmp_path):
    """Failure messages are stored, capped in length."""

    async def scenario():
        db = StateDB(tmp_path / "state.db")
        await db.initialize()
        await db.mark_failed("111-0000000-0000001", "run1", "x" * 2000)
        return await db.get_stats()

    assert asyncio.run(scenario()) == {"failed": 1}


def test_journal_roundtrip_keeps_snapshot_names(tmp_path):
    """Journal lines use the same field names as the snapshot."""
    record = DetailedRecord(
        id="111-0000000-0000001",
        amount=20.0,
        refund_amount=2.5,
        items=[Item(name="Cable", price=9.99)],
    )

    async def scenario():
        spool = SpoolManager(tmp_path / "spool")
        await spool.write_record(record, "abc")
        await spool.write_record(record.model_copy(update={"id": "111-0000000-0000002"}), "abc")
        return await spool.read_run("abc")

    lines = asyncio.run(scenario())
    assert [line["orderId"] for line in lines] == ["111-0000000-0000001", "111-0000000-0000002"]
    assert lines[0]["netAmount"] == 17.5
    assert lines[0]["items"][0]["imageUrl"] == ""


def test_journal_skips_torn_line(tmp_path):
    """A partially written last line is ignored."""
    spool = SpoolManager(tmp_path)
    (tmp_path / "run_x.jsonl").write_bytes(b'{"orderId": "111-0000000-0000001"}\n{"orderId": "11')

    lines = asyncio.run(spool.read_run("x"))
    assert lines == [{"orderId": "111-0000000-0000001"}]


def test_delete_run(tmp_path):
    """The run journal is removed once the snapshot exists."""
    spool = SpoolManager(tmp_path)
    (tmp_path / "run_x.jsonl").write_bytes(b"{}\n")
    asyncio.run(spool.delete_run("x"))

    assert list(spool.list_spool_files()) == []


def test_cleanup_only_old_journals(tmp_path):
    """Journals older than the cutoff are deleted, recent ones kept."""
    old = tmp_path / "run_old.jsonl"
    new = tmp_path / "run_new.jsonl"
    old.write_bytes(b"{}\n")
    new.write_bytes(b"{}\n")
    ten_days_ago = time.time() - 10 * 24 * 3600
    os.utime(old, (ten_days_ago, ten_days_ago))

    assert cleanup_spool(tmp_path, dry_run=True, older_than_days=7) == [old]
    assert old.exists()

    cleanup_spool(tmp_path, older_than_days=7)
    assert not old.exists()
    assert new.exists()
