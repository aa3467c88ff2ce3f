"""Progress of the detail jobs of one run, overall and per worker."""
import logging
import time
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

REPORT_EVERY = 10


@dataclass
class WorkerProgress:
    """Jobs one worker was handed and how they ended."""

    worker_id: int
    assigned: int
    ok: int = 0
    degraded: int = 0

    @property
    def finished(self) -> int:
        return self.ok + self.degraded

    def label(self) -> str:
        return f"w{self.worker_id} {self.finished}/{self.assigned}"


class Metrics:
    """Job outcomes, screenshot results, rate and ETA for the worker pool.

    ``assign`` is called once the refs are partitioned; every job then ends
    in exactly one ``record_job`` call.
    """

    def __init__(self, total: int):
        self.total = total
        self.start_time = time.monotonic()
        self.workers: dict[int, WorkerProgress] = {}
        self.screenshots = 0
        self.screenshot_failures = 0

    def assign(self, chunk_sizes: Sequence[int]) -> None:
        self.workers = {
            worker_id: WorkerProgress(worker_id, size) for worker_id, size in enumerate(chunk_sizes)
        }

    def _worker(self, worker_id: int) -> WorkerProgress:
        if worker_id not in self.workers:
            self.workers[worker_id] = WorkerProgress(worker_id, 0)
        return self.workers[worker_id]

    def record_job(self, worker_id: int, ok: bool) -> None:
        progress = self._worker(worker_id)
        if ok:
            progress.ok += 1
        else:
            progress.degraded += 1
        if self.processed % REPORT_EVERY == 0:
            self.report()

    def record_capture(self, captured: bool) -> None:
        if captured:
            self.screenshots += 1
        else:
            self.screenshot_failures += 1

    @property
    def ok(self) -> int:
        return sum(progress.ok for progress in self.workers.values())

    @property
    def degraded(self) -> int:
        return sum(progress.degraded for progress in self.workers.values())

    @property
    def processed(self) -> int:
        return self.ok + self.degraded

    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def rate(self) -> float:
        """Finished jobs per second since the pool started."""
        elapsed = self.elapsed()
        return self.processed / elapsed if elapsed > 0 else 0.0

    def eta_seconds(self) -> float:
        rate = self.rate()
        if rate <= 0:
            return 0.0
        return max(self.total - self.processed, 0) / rate

    def report(self) -> None:
        percent = self.processed * 100 // self.total if self.total else 0
        workers = ", ".join(progress.label() for progress in self.workers.values())
        logger.info(
            f"Progress: {self.processed}/{self.total} ({percent}%) | "
            f"Rate: {self.rate():.2f}/s | ETA: {self.eta_seconds():.0f}s | "
            f"OK: {self.ok} | Degraded: {self.degraded} | "
            f"Screenshots: {self.screenshots} | Workers: [{workers}]"
        )

    def get_summary(self) -> dict:
        return {
            "total": self.total,
            "processed": self.processed,
            "ok": self.ok,
            "degraded": self.degraded,
            "artifacts": self.screenshots,
            "artifact_failures": self.screenshot_failures,
            "rate": self.rate(),
            "eta_seconds": self.eta_seconds(),
            "elapsed_seconds": self.elapsed(),
            "workers": {
                progress.worker_id: {"assigned": progress.assigned, "ok": progress.ok, "degraded": progress.degraded}
                for progress in self.workers.values()
            },
        }
