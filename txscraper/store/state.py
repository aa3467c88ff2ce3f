"""SQLite state database for tracking per-order progress."""
import aiosqlite
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class StateDB:
    """SQLite database for tracking scraping progress.

    Each job writes a ``started`` marker before any navigation, then
    ``ok`` or ``failed``. Rows still ``started`` at the next start-up belong
    to jobs that were killed mid-flight.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS order_progress (
                    order_id TEXT PRIMARY KEY,
                    status TEXT NOT NULL,
                    run_id TEXT,
                    updated_at TIMESTAMP,
                    error TEXT
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_status ON order_progress(status)
                """
            )
            await db.commit()
            logger.info(f"State database initialized at {self.db_path}")

    async def _set_status(self, order_id: str, status: str, run_id: str, error: str | None = None) -> None:
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO order_progress (order_id, status, run_id, updated_at, error)
                VALUES (?, ?, ?, datetime('now'), ?)
                """,
                (order_id, status, run_id, error[:500] if error else None),
            )
            await db.commit()

    async def mark_started(self, order_id: str, run_id: str) -> None:
        """Write-ahead marker before a job touches the browser."""
        await self._set_status(order_id, "started", run_id)

    async def mark_done(self, order_id: str, run_id: str) -> None:
        """Mark order as fully extracted."""
        await self._set_status(order_id, "ok", run_id)

    async def mark_failed(self, order_id: str, run_id: str, error: str) -> None:
        """Mark order as failed (degraded record written)."""
        await self._set_status(order_id, "failed", run_id, error)

    async def _ids_with_status(self, status: str) -> set[str]:
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT order_id FROM order_progress WHERE status = ?",
                (status,),
            )
            return {row[0] for row in await cursor.fetchall()}

    async def done_ids(self) -> set[str]:
        """Ids of orders fully extracted in any run."""
        return await self._ids_with_status("ok")

    async def interrupted_ids(self) -> set[str]:
        """Ids whose job started but never finished."""
        return await self._ids_with_status("started")

    async def failed_ids(self) -> set[str]:
        """Ids whose last job ended in a degraded record."""
        return await self._ids_with_status("failed")

    async def get_stats(self) -> dict:
        """Get statistics about progress."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT status, COUNT(*) FROM order_progress
                GROUP BY status
                """
            )
            stats = {row[0]: row[1] for row in await cursor.fetchall()}
            return stats
