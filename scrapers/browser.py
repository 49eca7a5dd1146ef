"""
browser.py — Owns the headless Chromium session used by the extractor.

One session is shared by every source in a run. Each source gets its own
browser context so cookies and storage never leak between job boards.
"""

import random
from contextlib import contextmanager
from typing import Iterator, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from config import BROWSER, NAVIGATION_TIMEOUT_MS, SELECTOR_TIMEOUT_MS
from exceptions import LaunchError, NavigationError, NavigationTimeoutError, SelectorTimeoutError
from monitoring import get_logger

logger = get_logger("scrapers.browser")

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36 Edg/120.0.0.0",
]

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}


class BrowserSessionManager:
    """Lifecycle-scoped Playwright session. Use as a context manager."""

    def __init__(
        self,
        headless: bool = BROWSER["headless"],
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        selector_timeout_ms: int = SELECTOR_TIMEOUT_MS,
        viewport: Optional[dict] = None,
        launch_args: Optional[list[str]] = None,
    ):
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.selector_timeout_ms = selector_timeout_ms
        self.viewport = viewport or dict(BROWSER["viewport"])
        self.launch_args = launch_args if launch_args is not None else list(BROWSER["launch_args"])
        self._playwright = None
        self._browser = None

    @property
    def is_active(self) -> bool:
        return self._browser is not None

    def initialize(self):
        """Launch the browser if it isn't running yet. Raises LaunchError on failure."""
        if self._browser is not None:
            return self._browser

        logger.info("Starting headless browser...")
        try:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.headless,
                args=self.launch_args,
            )
        except Exception as e:
            self.close()
            raise LaunchError(f"Browser failed to launch: {e}") from e

        logger.info("Browser started successfully")
        return self._browser

    @contextmanager
    def open_page(self) -> Iterator[Page]:
        """Yield a page in a fresh, isolated browser context."""
        browser = self.initialize()
        context = browser.new_context(
            user_agent=random.choice(USER_AGENTS),
            viewport=self.viewport,
            extra_http_headers=EXTRA_HEADERS,
        )
        try:
            page = context.new_page()
            page.set_default_navigation_timeout(self.navigation_timeout_ms)
            yield page
        finally:
            try:
                context.close()
            except PlaywrightError:
                logger.debug("Browser context close failed", exc_info=True)

    def fetch_listing_html(self, url: str, card_selector: str) -> str:
        """
        Navigate to a search page and wait for listing cards to render.
        Returns the page HTML. Raises a PageError subclass on failure.
        """
        with self.open_page() as page:
            try:
                page.goto(url, timeout=self.navigation_timeout_ms, wait_until="networkidle")
            except PlaywrightTimeoutError as e:
                raise NavigationTimeoutError(
                    f"Navigation timed out after {self.navigation_timeout_ms}ms", url=url
                ) from e
            except PlaywrightError as e:
                raise NavigationError(f"Navigation failed: {e}", url=url) from e

            try:
                page.wait_for_selector(card_selector, timeout=self.selector_timeout_ms)
            except PlaywrightTimeoutError as e:
                raise SelectorTimeoutError(
                    f"No '{card_selector}' cards after {self.selector_timeout_ms}ms", url=url
                ) from e
            except PlaywrightError as e:
                raise NavigationError(f"Page failed while waiting for cards: {e}", url=url) from e

            return page.content()

    def close(self):
        """Release the browser and the Playwright driver. Safe to call repeatedly."""
        if self._browser is not None:
            try:
                self._browser.close()
            except PlaywrightError:
                logger.debug("Browser close failed", exc_info=True)
            self._browser = None
            logger.info("Browser closed")
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except PlaywrightError:
                logger.debug("Playwright stop failed", exc_info=True)
            self._playwright = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
