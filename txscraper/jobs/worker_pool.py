"""Worker pool: N isolated browser contexts extracting order details."""
import asyncio
import logging
import math
from typing import Optional, Sequence, TypeVar

from txscraper.auth.session import USER_AGENT, VIEWPORT
from txscraper.config import Config
from txscraper.errors import WorkerContextError
from txscraper.jobs.metrics import Metrics
from txscraper.jobs.run_control import RunControl
from txscraper.parse.models import DetailedRecord, RecordRef
from txscraper.parse.order_details import extract_detailed_record, extract_order_fields
from txscraper.parse.redact import redact_string
from txscraper.store.artifacts import ArtifactCache
from txscraper.store.dedup import DedupIndex
from txscraper.store.dev_storage import DevStorage
from txscraper.store.spool import SpoolManager
from txscraper.store.state import StateDB

logger = logging.getLogger(__name__)

T = TypeVar("T")


def partition(items: Sequence[T], n: int) -> list[list[T]]:
    """Split items into n contiguous chunks of size ceil(len/n).

    Trailing chunks are empty when there are fewer items than workers.
    Concatenating the chunks gives back the input in order.
    """
    if n < 1:
        raise ValueError("n must be >= 1")
    size = max(1, math.ceil(len(items) / n))
    return [list(items[i * size:(i + 1) * size]) for i in range(n)]


class WorkerPool:
    """Runs one extraction job per ref across ``config.workers`` contexts.

    Each worker gets its own browser context seeded once with the parent
    session's cookies; after that no browser state is shared. Jobs inside a
    worker run strictly in order, separated by ``delay_between_requests_ms``.
    """

    def __init__(
        self,
        config: Config,
        browser,
        cookies: list[dict],
        index: DedupIndex,
        state_db: StateDB,
        spool: SpoolManager,
        artifacts: ArtifactCache,
        run_control: RunControl,
        metrics: Metrics,
        run_id: str,
        dev_storage: Optional[DevStorage] = None,
    ):
        self.config = config
        self.browser = browser
        self.cookies = list(cookies)
        self.index = index
        self.state_db = state_db
        self.spool = spool
        self.artifacts = artifacts
        self.run_control = run_control
        self.metrics = metrics
        self.run_id = run_id
        self.dev_storage = dev_storage

    async def run(self, refs: Sequence[RecordRef]) -> list[list[DetailedRecord]]:
        """Dispatch every ref once; returns one record list per worker, in chunk order."""
        chunks = partition(refs, self.config.workers)
        self.metrics.assign([len(chunk) for chunk in chunks])
        logger.info(
            f"Dispatching {len(refs)} jobs to {self.config.workers} workers "
            f"(chunk sizes: {[len(chunk) for chunk in chunks]})"
        )
        tasks = [self._run_worker(worker_id, chunk) for worker_id, chunk in enumerate(chunks)]
        return list(await asyncio.gather(*tasks))

    async def _open_context(self, worker_id: int):
        context = None
        try:
            context = await self.browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
            if self.cookies:
                await context.add_cookies(self.cookies)
            page = await context.new_page()
            page.set_default_timeout(self.config.timeout_ms)
            return context, page
        except Exception as e:
            if context is not None:
                await self._close_context(worker_id, context)
            raise WorkerContextError(f"Worker {worker_id}: could not create context: {e}") from e

    async def _close_context(self, worker_id: int, context) -> None:
        try:
            await context.close()
        except Exception as e:
            logger.warning(f"Worker {worker_id}: error closing context: {e}")

    async def _run_worker(self, worker_id: int, chunk: list[RecordRef]) -> list[DetailedRecord]:
        if not chunk:
            return []

        try:
            context, page = await self._open_context(worker_id)
        except WorkerContextError as e:
            logger.error(f"{redact_string(str(e))}; degrading {len(chunk)} jobs")
            records = []
            for ref in chunk:
                await self.state_db.mark_failed(ref.id, self.run_id, "worker context unavailable")
                records.append(self._degrade(worker_id, ref))
            return records

        records: list[DetailedRecord] = []
        try:
            for position, ref in enumerate(chunk):
                should_stop, reason = self.run_control.should_stop()
                if should_stop:
                    logger.warning(
                        f"Worker {worker_id}: {reason}; leaving {len(chunk) - position} jobs for the next run"
                    )
                    break

                if position > 0 and self.config.delay_between_requests_ms > 0:
                    await asyncio.sleep(self.config.delay_between_requests_ms / 1000)

                records.append(await self._run_job(worker_id, page, ref))
        finally:
            await self._close_context(worker_id, context)
            logger.debug(f"Worker {worker_id}: context closed after {len(records)} jobs")

        return records

    async def _run_job(self, worker_id: int, page, ref: RecordRef) -> DetailedRecord:
        """Extract one order; a failing job becomes a degraded record."""
        try:
            await self.state_db.mark_started(ref.id, self.run_id)
            if not ref.detail_url:
                raise ValueError("no detail URL for this row")

            logger.info(f"Worker {worker_id}: order {ref.id}")
            await page.goto(ref.detail_url, wait_until="domcontentloaded", timeout=self.config.timeout_ms)
            await page.wait_for_load_state("networkidle", timeout=self.config.timeout_ms)
            html_content = await page.content()

            target = self.artifacts.path_for(ref.id)
            captured = await self.artifacts.capture(page, target)
            self.metrics.record_capture(captured)

            record = extract_detailed_record(
                ref,
                html_content,
                artifact_path=str(target) if captured else "",
                base_url=self.config.base_url,
            )

            await self.spool.write_record(record, self.run_id)
            await self.state_db.mark_done(ref.id, self.run_id)
            if not ref.synthetic_id:
                self.index.add(ref.id)

            if self.dev_storage:
                strategies = {name: res.tag for name, res in extract_order_fields(html_content).items()}
                self.dev_storage.save_order(ref.id, record.to_json(), html_content, strategies)

            self.metrics.record_job(worker_id, ok=True)
            self.run_control.record_success()
            return record

        except Exception as e:
            error_msg = redact_string(f"{type(e).__name__}: {e}")
            logger.warning(f"Worker {worker_id}: order {ref.id} failed, keeping minimal record: {error_msg}")
            await self.state_db.mark_failed(ref.id, self.run_id, error_msg)
            self.run_control.record_error()
            return self._degrade(worker_id, ref)

    def _degrade(self, worker_id: int, ref: RecordRef) -> DetailedRecord:
        self.metrics.record_job(worker_id, ok=False)
        return DetailedRecord.degraded(ref)
