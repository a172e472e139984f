"""
Shared headless browser for the content extractor.

Launching Chromium costs seconds, so one browser is kept per process and
each extraction gets its own short-lived context and page. Concurrent
first callers share a single launch; a disconnected browser is dropped and
relaunched on the next call.

Usage:
    pool = get_browser_pool()
    page = await scrape_with_browser(pool, url, user_agent, timeout_seconds=30)
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from playwright.async_api import Browser, Page, async_playwright

from src.common.config import Config

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
    "--disable-blink-features=AutomationControlled",
]

BROWSER_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}

# Runs before any page script: hide automation markers
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
window.chrome = { runtime: {} };
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
"""


class BrowserLaunchError(Exception):
    """Chromium could not be started."""


@dataclass
class BrowserPage:
    """Rendered page content."""

    html: str
    title: str
    final_url: str
    status: int
    latency_ms: int


class BrowserPool:
    """
    Lazily launched, process-wide browser.

    Args:
        headless: Headless toggle (defaults to BROWSER_HEADLESS)
        launcher: Coroutine factory returning a Browser (injectable for tests)
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        launcher: Optional[Callable[[], Awaitable[Browser]]] = None,
    ):
        self.headless = Config.BROWSER_HEADLESS if headless is None else headless
        self._launcher = launcher
        self._browser: Optional[Browser] = None
        self._playwright: Any = None
        self._launch_task: Optional[asyncio.Task] = None
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def get_browser(self) -> Browser:
        """
        Return the shared browser, launching it if needed.

        Raises:
            BrowserLaunchError: If the launch fails (the next call retries)
        """
        if self.is_running:
            return self._browser

        if self._launch_task is not None and self._launch_task.done() and not self.is_running:
            # Launched earlier but the browser has since gone away
            self._launch_task = None

        if self._launch_task is None:
            self._launch_task = asyncio.ensure_future(self._launch())

        task = self._launch_task
        try:
            # shield: one caller timing out must not cancel the shared launch
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._launch_task is task:
                self._launch_task = None
            logger.error(f"Browser launch failed: {e}")
            raise BrowserLaunchError(f"Failed to launch browser: {e}") from e

    async def _launch(self) -> Browser:
        if self._launcher is not None:
            browser = await self._launcher()
        else:
            # A relaunch replaces the driver left over from the last browser
            await self._stop_driver()
            self._playwright = await async_playwright().start()
            try:
                browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=LAUNCH_ARGS,
                )
            except Exception:
                await self._stop_driver()
                raise
        browser.on("disconnected", self._on_disconnected)
        self._browser = browser
        self.launch_count += 1
        logger.info(f"Browser launched (headless={self.headless}, launches={self.launch_count})")
        return browser

    def _on_disconnected(self, *_args) -> None:
        logger.warning("Browser disconnected; will relaunch on next use")
        self._browser = None
        self._launch_task = None

    @asynccontextmanager
    async def page(self, user_agent: str, timeout_seconds: float) -> AsyncIterator[Page]:
        """
        Fresh stealth-configured page in its own context.

        The context (and with it the page) is closed on every exit path.
        """
        browser = await self.get_browser()
        context = await browser.new_context(
            user_agent=user_agent,
            viewport=VIEWPORT,
            device_scale_factor=1,
            locale="en-US",
            extra_http_headers=BROWSER_HEADERS,
        )
        try:
            await context.add_init_script(STEALTH_INIT_SCRIPT)
            page = await context.new_page()
            timeout_ms = int(timeout_seconds * 1000)
            page.set_default_timeout(timeout_ms)
            page.set_default_navigation_timeout(timeout_ms)
            yield page
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")

    async def close(self) -> None:
        """Shut the browser down (process exit, tests)."""
        browser, self._browser = self._browser, None
        self._launch_task = None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.warning(f"Error closing browser: {e}")
        await self._stop_driver()
        logger.info("Browser pool closed")

    async def _stop_driver(self) -> None:
        playwright, self._playwright = self._playwright, None
        if playwright is None:
            return
        try:
            await playwright.stop()
        except Exception as e:
            logger.warning(f"Error stopping Playwright driver: {e}")


async def scrape_with_browser(
    pool: BrowserPool,
    url: str,
    user_agent: str,
    timeout_seconds: float,
    wait_for_selector: Optional[str] = None,
    wait_for_network_idle: bool = True,
) -> BrowserPage:
    """
    Render a URL in the shared browser.

    Raises:
        BrowserLaunchError: Browser unavailable
        RuntimeError: Navigation returned an HTTP error status
        playwright TimeoutError: Navigation or selector wait timed out
    """
    started = time.perf_counter()
    async with pool.page(user_agent, timeout_seconds) as page:
        logger.info(f"Browser navigating to {url}")
        response = await page.goto(
            url,
            wait_until="networkidle" if wait_for_network_idle else "load",
            timeout=int(timeout_seconds * 1000),
        )
        status = response.status if response is not None else 0
        if status >= 400:
            raise RuntimeError(f"HTTP {status} from browser navigation")
        if wait_for_selector:
            await page.wait_for_selector(wait_for_selector, timeout=int(timeout_seconds * 1000))

        return BrowserPage(
            html=await page.content(),
            title=await page.title(),
            final_url=page.url,
            status=status,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )


# Singleton instance
_browser_pool_instance: Optional[BrowserPool] = None


def get_browser_pool() -> BrowserPool:
    """Get the process-wide browser pool (singleton)."""
    global _browser_pool_instance
    if _browser_pool_instance is None:
        _browser_pool_instance = BrowserPool()
    return _browser_pool_instance


def reset_browser_pool() -> None:
    """Drop the singleton without closing it (tests)."""
    global _browser_pool_instance
    _browser_pool_instance = None
