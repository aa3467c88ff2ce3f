"""Walk the paginated transactions list."""
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from txscraper.config import Config
from txscraper.parse.models import RecordRef
from txscraper.parse.rows import extract_refs, find_rows

logger = logging.getLogger(__name__)

NEXT_PAGE_SELECTOR = 'span:has-text("Next Page")'


class ListView(Protocol):
    """Browsing context positioned on the list view."""

    async def content(self) -> str: ...

    async def next_page(self) -> bool:
        """Activate the next-page control; False when there is none."""
        ...


class PlaywrightListView:
    """ListView backed by a Playwright page."""

    def __init__(self, page, settle_ms: int = 2000, timeout_ms: int = 30000):
        self.page = page
        self.settle_ms = settle_ms
        self.timeout_ms = timeout_ms

    async def content(self) -> str:
        return await self.page.content()

    async def next_page(self) -> bool:
        control = await self.page.query_selector(NEXT_PAGE_SELECTOR)
        if control is None:
            return False
        await control.click()
        await self.page.wait_for_load_state("networkidle", timeout=self.timeout_ms)
        await self.page.wait_for_timeout(self.settle_ms)
        return True


class PagerState(enum.Enum):
    IDLE = "idle"
    PAGING = "paging"
    DONE = "done"
    ERROR = "error"


class StopReason(enum.Enum):
    NO_ROWS = "no_rows"
    NO_NEXT_PAGE = "no_next_page"
    CAP_REACHED = "cap_reached"
    CONTEXT_ERROR = "context_error"


@dataclass
class PageWalk:
    """Result of one walk over the list view."""

    refs: list[RecordRef] = field(default_factory=list)
    state: PagerState = PagerState.IDLE
    reason: Optional[StopReason] = None
    pages: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == PagerState.DONE


class ListPager:
    """Bounded pagination: Idle -> Paging -> Done | Error."""

    def __init__(self, config: Config):
        self.base_url = config.base_url
        self.order_url_pattern = config.order_url_pattern
        self.max_pages = config.max_pages

    async def walk(self, view: ListView) -> PageWalk:
        walk = PageWalk(state=PagerState.PAGING)
        seen: set[str] = set()

        while walk.state == PagerState.PAGING:
            try:
                html_content = await view.content()
            except Exception as e:
                self._fail(walk, e)
                break

            if not find_rows(html_content):
                logger.info(f"No transaction rows on page {walk.pages + 1}")
                self._finish(walk, StopReason.NO_ROWS)
                break

            walk.pages += 1
            page_refs = extract_refs(html_content, self.base_url, self.order_url_pattern)
            added = 0
            for ref in page_refs:
                if ref.id in seen:
                    continue
                seen.add(ref.id)
                walk.refs.append(ref)
                added += 1
            logger.info(f"Page {walk.pages}: {len(page_refs)} rows, {added} new refs")

            if walk.pages >= self.max_pages:
                logger.warning(f"Reached maximum page limit ({self.max_pages}), stopping pagination")
                self._finish(walk, StopReason.CAP_REACHED)
                break

            try:
                advanced = await view.next_page()
            except Exception as e:
                self._fail(walk, e)
                break
            if not advanced:
                logger.info("No 'Next Page' control, reached end of transactions")
                self._finish(walk, StopReason.NO_NEXT_PAGE)

        logger.info(
            f"Pagination {walk.state.value} ({walk.reason.value if walk.reason else '-'}): "
            f"{len(walk.refs)} refs across {walk.pages} pages"
        )
        return walk

    def _finish(self, walk: PageWalk, reason: StopReason) -> None:
        walk.state = PagerState.DONE
        walk.reason = reason

    def _fail(self, walk: PageWalk, error: Exception) -> None:
        logger.error(f"List view became unusable on page {walk.pages + 1}: {error}")
        walk.state = PagerState.ERROR
        walk.reason = StopReason.CONTEXT_ERROR
        walk.error = str(error)
