"""Run control: stop conditions and limits."""
import time
import logging
from typing import Optional
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RunControl:
    """Controls run stopping conditions.

    Workers consult ``should_stop`` before taking each new job; a stop never
    interrupts a job already in flight.
    """

    stop_after_minutes: Optional[int] = None
    max_errors: Optional[int] = None
    max_consecutive_errors: Optional[int] = None

    # Internal state
    start_time: float = field(default_factory=time.time)
    stop_requested: Optional[str] = None
    ok_count: int = 0
    error_count: int = 0
    consecutive_errors: int = 0
    last_error_time: Optional[float] = None

    def request_stop(self, reason: str = "interrupt") -> None:
        """Ask workers to stop taking new jobs."""
        if self.stop_requested is None:
            logger.warning(f"Stop requested ({reason}): finishing in-flight jobs")
            self.stop_requested = reason

    def should_stop(self) -> tuple[bool, Optional[str]]:
        """Check if run should stop. Returns (should_stop, reason)."""
        if self.stop_requested:
            return True, f"Stop requested: {self.stop_requested}"

        elapsed_minutes = (time.time() - self.start_time) / 60

        if self.stop_after_minutes and elapsed_minutes >= self.stop_after_minutes:
            return True, f"Reached stop_after_minutes={self.stop_after_minutes}"

        if self.max_errors and self.error_count >= self.max_errors:
            return True, f"Reached max_errors={self.max_errors}"

        if self.max_consecutive_errors and self.consecutive_errors >= self.max_consecutive_errors:
            return True, f"Reached max_consecutive_errors={self.max_consecutive_errors}"

        return False, None

    def record_error(self) -> None:
        """Record a failed job."""
        self.error_count += 1
        self.consecutive_errors += 1
        self.last_error_time = time.time()

    def record_success(self) -> None:
        """Record a successful job."""
        self.ok_count += 1
        self.consecutive_errors = 0

    def get_summary(self) -> dict:
        """Get summary statistics."""
        elapsed_minutes = (time.time() - self.start_time) / 60
        return {
            "elapsed_minutes": round(elapsed_minutes, 2),
            "ok_count": self.ok_count,
            "error_count": self.error_count,
            "consecutive_errors": self.consecutive_errors,
            "stop_requested": self.stop_requested,
        }
