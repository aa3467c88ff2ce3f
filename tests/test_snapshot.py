"""Tests for result aggregation and snapshot persistence."""
from datetime import date, datetime

import orjson
import pytest

from txscraper.errors import SnapshotWriteError
from txscraper.parse.models import DetailedRecord, RecordRef
from txscraper.store.snapshot import ResultAggregator, date_range_for, snapshot_filename


def _record(order_id: str, amount: float, refund: float = 0.0) -> DetailedRecord:
    return DetailedRecord(id=order_id, amount=amount, refund_amount=refund, date="July 2, 2024")


def test_totals_are_net_of_refunds(tmp_path):
    """totalAmount equals the sum of per-record netAmount."""
    chunks = [
        [_record("111-0000000-0000001", 54.20, 12.50), _record("111-0000000-0000002", 10.10)],
        [],
        [_record("111-0000000-0000003", 0.30, 0.10)],
    ]
    snapshot = ResultAggregator(tmp_path).merge(chunks, date_range_for(90, date(2024, 7, 31)))

    net_sum = sum(record.net_amount for record in snapshot.records)
    assert snapshot.metadata.total_records == 3
    assert snapshot.metadata.total_amount == round(net_sum, 2)
    assert snapshot.metadata.total_amount == pytest.approx(52.00)


def test_merge_keeps_chunk_order(tmp_path):
    """Records appear in chunk order, then in order within each chunk."""
    chunks = [[_record("a", 1), _record("b", 1)], [_record("c", 1)]]
    snapshot = ResultAggregator(tmp_path).merge(chunks, date_range_for(30))

    assert [record.id for record in snapshot.records] == ["a", "b", "c"]


def test_net_amount_on_every_record():
    """netAmount is derived and always equals amount - refund."""
    record = _record("111-0000000-0000001", 20.0, 5.0)
    degraded = DetailedRecord.degraded(RecordRef(id="111-0000000-0000002", raw_amount=7.5))

    assert record.net_amount == 15.0
    assert degraded.net_amount == 7.5
    assert degraded.extraction == "degraded"


def test_persisted_snapshot_format(tmp_path):
    """The snapshot file uses the camelCase names the report renderer reads."""
    aggregator = ResultAggregator(tmp_path, output_name="transactions")
    snapshot = aggregator.merge([[_record("111-0000000-0000001", 54.20, 12.50)]], date_range_for(90, date(2024, 7, 31)))
    path = aggregator.persist(snapshot, filename="transactions-2024-07-31-10-00.json")

    data = orjson.loads(path.read_bytes())
    assert data["metadata"]["dateRange"] == {"start": "2024-05-02", "end": "2024-07-31"}
    assert data["metadata"]["totalTransactions"] == 1
    assert data["metadata"]["totalAmount"] == pytest.approx(41.70)
    assert "generatedAt" in data["metadata"] and "scrapedAt" in data["metadata"]

    record = data["transactions"][0]
    assert record["orderId"] == "111-0000000-0000001"
    assert record["total"] == 54.20
    assert record["refund"] == 12.50
    assert record["netAmount"] == pytest.approx(41.70)
    assert record["orderScreenshot"] == ""
    assert record["syntheticId"] is False
    assert record["extraction"] == "complete"
    assert set(record["address"]) == {"street", "city", "state", "zip", "full"}


def test_persist_failure_is_fatal(tmp_path):
    """A snapshot that cannot be written raises SnapshotWriteError."""
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x")
    aggregator = ResultAggregator(blocker)
    snapshot = aggregator.merge([[]], date_range_for(1))

    with pytest.raises(SnapshotWriteError):
        aggregator.persist(snapshot)


def test_snapshot_filename():
    """Snapshot names carry the output name and a minute timestamp."""
    assert snapshot_filename("transactions", datetime(2024, 7, 31, 9, 5)) == "transactions-2024-07-31-09-05.json"


def test_same_minute_runs_do_not_overwrite(tmp_path):
    """A second snapshot in the same minute gets a new file name."""
    aggregator = ResultAggregator(tmp_path)
    first = aggregator.persist(aggregator.merge([[_record("a", 1)]], date_range_for(1)))
    second = aggregator.persist(aggregator.merge([[_record("b", 1)]], date_range_for(1)))

    assert first != second
    assert first.exists() and second.exists()
