"""Per-order screenshot capture, skipped when the file already exists."""
import logging
from pathlib import Path

from txscraper.store.dedup import artifact_name

logger = logging.getLogger(__name__)

ORDER_CONTAINER_SELECTORS = [
    "[data-component='orderCard']",
    "#orderDetails",
    ".order-details",
    "#od-container",
]
REFUND_LABEL_SELECTOR = 'text="Refund Total"'


class ArtifactCache:
    """Idempotent visual-proof capture, one PNG per order."""

    def __init__(self, screenshots_dir: Path, timeout_ms: int = 30000):
        self.screenshots_dir = screenshots_dir
        self.timeout_ms = timeout_ms

    def path_for(self, order_id: str) -> Path:
        return self.screenshots_dir / artifact_name(order_id)

    async def capture(self, page, target_path: Path) -> bool:
        """Capture the order view to target_path.

        Returns True when the file exists afterwards (including when it already
        existed and nothing was captured).
        """
        if target_path.exists():
            logger.debug(f"Artifact already present: {target_path.name}")
            return True

        target_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            await self._smart_capture(page, target_path)
        except Exception as e:
            logger.warning(f"Smart capture failed for {target_path.name}, using viewport: {e}")
            try:
                await page.screenshot(path=str(target_path), full_page=False, timeout=self.timeout_ms)
            except Exception as fallback_error:
                logger.error(f"Screenshot failed for {target_path.name}: {fallback_error}")
                return False

        logger.debug(f"Screenshot saved: {target_path}")
        return True

    async def _smart_capture(self, page, target_path: Path) -> None:
        container = await self._find_container(page)
        if container is not None:
            box = await container.bounding_box()
            viewport = page.viewport_size
            if box and viewport and box["y"] + box["height"] > viewport["height"]:
                await container.scroll_into_view_if_needed(timeout=self.timeout_ms)

        refund_label = await page.query_selector(REFUND_LABEL_SELECTOR)
        if refund_label is not None:
            await refund_label.hover(timeout=self.timeout_ms)
            await page.wait_for_timeout(500)

        if container is not None:
            await container.screenshot(path=str(target_path), timeout=self.timeout_ms)
        else:
            await page.screenshot(path=str(target_path), full_page=False, timeout=self.timeout_ms)

    async def _find_container(self, page):
        for selector in ORDER_CONTAINER_SELECTORS:
            element = await page.query_selector(selector)
            if element is not None:
                return element
        return None
