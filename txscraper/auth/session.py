"""Browser session: launch Chromium, sign in once, hand out the parent context."""
import logging
from typing import Optional

from playwright.async_api import async_playwright
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

from txscraper.auth.login_detector import is_auth_url, is_login_page
from txscraper.config import Config
from txscraper.errors import ListViewUnavailable, RunError
from txscraper.fetch.list_pager import PlaywrightListView

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 720}
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Upgrade-Insecure-Requests": "1",
}

LOGIN_POLL_MS = 2000


class SessionProvider:
    """Owns the Playwright browser and the authenticated parent context.

    A saved storage state is reused when present, so the human only signs in
    when the previous session has expired.
    """

    def __init__(self, config: Config):
        self.config = config
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(headless=self.config.headless)

        storage_state: Optional[str] = None
        if self.config.session_state_path.exists():
            storage_state = str(self.config.session_state_path)
            logger.info(f"Reusing saved session from {self.config.session_state_path}")

        self.context = await self.browser.new_context(
            viewport=VIEWPORT,
            user_agent=USER_AGENT,
            extra_http_headers=EXTRA_HEADERS,
            storage_state=storage_state,
        )
        self.page = await self.context.new_page()
        self.page.set_default_timeout(self.config.timeout_ms)

    async def ensure_logged_in(self) -> None:
        """Navigate to the payments page, waiting for a manual sign-in if one is required."""
        logger.info("Navigating to payments page...")
        await self.page.goto(self.config.payments_url, wait_until="domcontentloaded")
        await self.page.wait_for_timeout(LOGIN_POLL_MS)

        if is_login_page(await self.page.content(), self.page.url):
            if self.config.headless:
                raise RunError("Sign-in required but the browser is headless; rerun with --headed")
            await self._wait_for_manual_login()

        self.config.session_state_path.parent.mkdir(parents=True, exist_ok=True)
        await self.context.storage_state(path=str(self.config.session_state_path))
        logger.info("Session established")

    async def _wait_for_manual_login(self) -> None:
        timeout_ms = self.config.login_timeout_ms
        logger.warning(
            f"Authentication required (sign-in / 2FA / challenge). "
            f"Waiting up to {timeout_ms // 1000}s for it to be completed in the browser..."
        )
        waited = 0
        while waited < timeout_ms:
            await self.page.wait_for_timeout(LOGIN_POLL_MS)
            waited += LOGIN_POLL_MS
            url = self.page.url
            if not is_auth_url(url) and not is_login_page(await self.page.content(), url):
                logger.info("Authentication complete")
                return
            logger.debug(f"Still waiting for sign-in ({waited // 1000}s): {url[:80]}")
        raise RunError(f"Sign-in not completed within {timeout_ms // 1000}s")

    async def open_list_view(self) -> PlaywrightListView:
        """Load the transactions list, retrying up to max_retries times."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_retries),
                wait=wait_exponential(multiplier=1, min=2, max=10),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await self.page.goto(self.config.payments_url, wait_until="domcontentloaded")
                    await self.page.wait_for_load_state("networkidle", timeout=self.config.timeout_ms)
                    if is_login_page(await self.page.content(), self.page.url):
                        raise RunError("Session was signed out while opening the list view")
        except Exception as e:
            raise ListViewUnavailable(
                f"List view unavailable after {self.config.max_retries} attempts: {e}"
            ) from e

        return PlaywrightListView(
            self.page,
            settle_ms=self.config.delay_between_requests_ms,
            timeout_ms=self.config.timeout_ms,
        )

    async def cookies(self) -> list[dict]:
        """Snapshot of the parent context's cookies, copied into each worker context."""
        return await self.context.cookies()

    async def close(self) -> None:
        for resource, name in ((self.context, "context"), (self.browser, "browser")):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")
        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = None
        self.browser = None
        self.context = None
        self.page = None
