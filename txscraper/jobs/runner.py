"""Main job runner orchestrating the scraping pipeline."""
import asyncio
import logging
import signal
import uuid
from pathlib import Path
from typing import Callable, Optional

from txscraper.auth.session import SessionProvider
from txscraper.config import Config
from txscraper.errors import RunError
from txscraper.fetch.list_pager import ListPager, PageWalk
from txscraper.jobs.metrics import Metrics
from txscraper.jobs.metrics_exporter import MetricsExporter
from txscraper.jobs.run_control import RunControl
from txscraper.jobs.worker_pool import WorkerPool
from txscraper.parse.models import RunSnapshot
from txscraper.store.artifacts import ArtifactCache
from txscraper.store.dedup import DedupIndex, DedupStore
from txscraper.store.dev_storage import DevStorage
from txscraper.store.snapshot import ResultAggregator, date_range_for
from txscraper.store.spool import SpoolManager
from txscraper.store.state import StateDB

logger = logging.getLogger(__name__)


class ScrapeRunner:
    """Orchestrates one run: sign in, list, dedup, extract, persist."""

    def __init__(
        self,
        config: Config,
        days: Optional[int] = None,
        output_name: str = "transactions",
        resume: bool = True,
        dev_mode: bool = False,
        stop_after_minutes: Optional[int] = None,
        max_errors: Optional[int] = None,
        max_consecutive_errors: Optional[int] = None,
        session_factory: Callable[[Config], SessionProvider] = SessionProvider,
    ):
        self.config = config
        self.days = days if days is not None else config.default_days
        self.output_name = output_name
        self.resume = resume
        self.dev_mode = dev_mode
        self.session_factory = session_factory

        self.run_id = uuid.uuid4().hex[:12]
        logger.info(f"Run ID: {self.run_id}")

        self.run_control = RunControl(
            stop_after_minutes=stop_after_minutes,
            max_errors=max_errors,
            max_consecutive_errors=max_consecutive_errors,
        )

        self.state_db = StateDB(config.state_db)
        self.spool = SpoolManager(config.spool_dir)
        self.dedup = DedupStore(config, state_db=self.state_db, spool=self.spool)
        self.artifacts = ArtifactCache(config.screenshots_dir, timeout_ms=config.timeout_ms)
        self.aggregator = ResultAggregator(config.data_dir, output_name)
        self.dev_storage = DevStorage(config.data_dir) if dev_mode else None

        self.metrics = Metrics(0)
        self.metrics_exporter = MetricsExporter(self.run_id, config.data_dir)
        self.walk: Optional[PageWalk] = None
        self.snapshot: Optional[RunSnapshot] = None

    async def initialize(self) -> None:
        """Create directories and the progress database."""
        self.config.ensure_dirs()
        await self.state_db.initialize()

    async def run(self) -> tuple[Path, Path]:
        """Run the scrape. Returns (snapshot path, screenshots dir)."""
        await self.initialize()
        self._install_signal_handlers()
        try:
            async with self.session_factory(self.config) as session:
                return await self._run_with_session(session)
        finally:
            self._remove_signal_handlers()
            await self._final_report()

    async def _run_with_session(self, session) -> tuple[Path, Path]:
        if self.resume:
            await self.dedup.load()
        else:
            logger.info("Resume disabled: every listed order will be extracted again")
            self.dedup.index = DedupIndex()

        await session.ensure_logged_in()
        view = await session.open_list_view()

        self.walk = await ListPager(self.config).walk(view)
        if not self.walk.ok and not self.walk.refs:
            raise RunError(f"Transactions list could not be read: {self.walk.error}")

        refs = self.dedup.filter(self.walk.refs)
        self.metrics = Metrics(len(refs))
        await self._export_metrics("listed")

        pool = WorkerPool(
            config=self.config,
            browser=session.browser,
            cookies=await session.cookies(),
            index=self.dedup.index,
            state_db=self.state_db,
            spool=self.spool,
            artifacts=self.artifacts,
            run_control=self.run_control,
            metrics=self.metrics,
            run_id=self.run_id,
            dev_storage=self.dev_storage,
        )
        chunks = await pool.run(refs)

        self.snapshot = self.aggregator.merge(chunks, date_range_for(self.days))
        snapshot_path = self.aggregator.persist(self.snapshot)
        await self.spool.delete_run(self.run_id)

        logger.info(f"Snapshot: {snapshot_path}")
        logger.info(f"Screenshots: {self.config.screenshots_dir}")
        return snapshot_path, self.config.screenshots_dir

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.run_control.request_stop, sig.name)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform / not the main thread
                logger.debug(f"Cannot install handler for {sig.name}")

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass

    async def _export_metrics(self, phase: str) -> None:
        summary = self.metrics.get_summary()
        await self.metrics_exporter.export_metrics(
            phase=phase,
            listed=len(self.walk.refs) if self.walk else 0,
            queued=summary["total"],
            ok=summary["ok"],
            degraded=summary["degraded"],
            artifacts=summary["artifacts"],
            pages=self.walk.pages if self.walk else 0,
            rps=summary["rate"],
        )

    async def _final_report(self) -> None:
        """Generate final report."""
        summary = self.metrics.get_summary()
        run_summary = self.run_control.get_summary()

        logger.info("=" * 60)
        logger.info("FINAL REPORT")
        logger.info(f"Run ID: {self.run_id}")
        logger.info(f"Elapsed: {run_summary['elapsed_minutes']:.2f} minutes")
        if self.walk:
            reason = self.walk.reason.value if self.walk.reason else "-"
            logger.info(f"Pages read: {self.walk.pages} ({self.walk.state.value}, {reason})")
            logger.info(f"Listed: {len(self.walk.refs)}")
        logger.info(f"Processed: {summary['processed']}/{summary['total']}")
        logger.info(f"OK: {summary['ok']}")
        logger.info(f"Degraded: {summary['degraded']}")
        logger.info(f"Screenshots: {summary['artifacts']} (failed: {summary['artifact_failures']})")
        for progress in self.metrics.workers.values():
            logger.info(f"Worker {progress.worker_id}: {progress.ok} ok, {progress.degraded} degraded of {progress.assigned}")
        if run_summary["stop_requested"]:
            logger.info(f"Stopped early: {run_summary['stop_requested']}")
        if self.snapshot:
            logger.info(f"Total transactions: {self.snapshot.metadata.total_records}")
            logger.info(f"Total amount: ${self.snapshot.metadata.total_amount:.2f}")
        logger.info(f"Throughput: {summary['rate']:.2f} orders/s")
        logger.info("=" * 60)

        try:
            await self._export_metrics("final")
        except OSError as e:
            logger.warning(f"Could not export metrics: {e}")
