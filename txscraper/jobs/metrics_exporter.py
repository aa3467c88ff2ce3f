"""Metrics exporter for observability."""
import time
from pathlib import Path

import aiofiles
import orjson


class MetricsExporter:
    """Appends one JSON line per run phase to data/metrics.jsonl."""

    def __init__(self, run_id: str, data_dir: Path):
        self.run_id = run_id
        self.metrics_file = data_dir / "metrics.jsonl"
        self.start_time = time.time()

    async def export_metrics(
        self,
        phase: str,
        listed: int,
        queued: int,
        ok: int,
        degraded: int,
        artifacts: int,
        pages: int = 0,
        rps: float = 0.0,
    ) -> None:
        """Export metrics to JSONL file."""
        metrics = {
            "ts": time.time(),
            "run_id": self.run_id,
            "phase": phase,
            "listed": listed,
            "queued": queued,
            "ok": ok,
            "degraded": degraded,
            "artifacts": artifacts,
            "pages": pages,
            "rps": round(rps, 2),
            "elapsed": round(time.time() - self.start_time, 2),
        }

        self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(self.metrics_file, "ab") as f:
            await f.write(orjson.dumps(metrics) + b"\n")
