"""
Resilient content extraction for job postings and company sites.

Strategies, in order, each tried only after the previous one is exhausted:
1. fetch-basic    plain GET with a rotated user agent
2. fetch-headers  GET with a full realistic browser header set
3. browser        headless Chromium from the shared BrowserPool

HTTP strategies retry with exponential backoff (1s, 2s, 4s, capped at 5s).
The browser gets one attempt with double the timeout. Only exhausting every
strategy raises ExtractionError.

Usage:
    extractor = ContentExtractor()
    result = await extractor.extract("https://jobs.example.com/123")
    print(result.clean_text, result.meta.strategy)
"""

import asyncio
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.common.config import Config
from src.common.types import ExtractionMeta, ExtractionResult
from src.services.browser_pool import BrowserPool, get_browser_pool, scrape_with_browser

logger = logging.getLogger(__name__)

MAX_CLEAN_TEXT_CHARS = 8000
RETRY_BASE_SECONDS = 1.0
RETRY_CAP_SECONDS = 5.0
ACCESSIBILITY_TIMEOUT_SECONDS = 5.0

STRATEGY_BASIC = "fetch-basic"
STRATEGY_HEADERS = "fetch-headers"
STRATEGY_BROWSER = "browser"

# Desktop browsers, one picked per extraction
USER_AGENTS = [
    # Chrome Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    # Chrome macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    # Firefox
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:121.0) Gecko/20100101 Firefox/121.0",
    # Safari macOS
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    # Edge Windows
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
]

FULL_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
    "DNT": "1",
}

_WHITESPACE = re.compile(r"\s+")


class FetchError(Exception):
    """One failed HTTP attempt."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ExtractionError(Exception):
    """Every strategy failed."""

    def __init__(self, message: str, attempts: int = 0, last_error: Optional[str] = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


@dataclass
class ExtractionOptions:
    """Per-call overrides; None means use the extractor default."""

    max_retries: Optional[int] = None
    timeout_seconds: Optional[float] = None
    force_strategy: Optional[str] = None   # "fetch" | "browser"
    user_agent: Optional[str] = None
    wait_for_selector: Optional[str] = None


def get_random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def clean_html(html: str) -> Tuple[str, str]:
    """
    Strip non-content elements and normalize whitespace.

    Returns:
        (clean_text, title); text capped at 8000 chars plus "..."
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript", "iframe", "svg"]):
        tag.decompose()

    title = ""
    if soup.title and soup.title.get_text(strip=True):
        title = soup.title.get_text(strip=True)
    else:
        heading = soup.find("h1")
        if heading:
            title = heading.get_text(strip=True)

    root = soup.body or soup
    text = _WHITESPACE.sub(" ", root.get_text(" ")).strip()
    if len(text) > MAX_CLEAN_TEXT_CHARS:
        text = text[:MAX_CLEAN_TEXT_CHARS] + "..."
    return text, title


class ContentExtractor:
    """
    Multi-strategy page fetcher.

    Args:
        browser_pool: Shared browser (defaults to the process singleton)
        transport: httpx transport (httpx.MockTransport in tests)
        sleep: Awaitable used between retries
        max_retries: Retries per HTTP strategy (defaults to SCRAPER_MAX_RETRIES)
        timeout_seconds: Per-attempt HTTP timeout (defaults to SCRAPER_TIMEOUT_SECONDS)
    """

    def __init__(
        self,
        browser_pool: Optional[BrowserPool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        max_retries: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self._browser_pool = browser_pool
        self._transport = transport
        self._sleep = sleep
        self.max_retries = Config.SCRAPER_MAX_RETRIES if max_retries is None else max_retries
        self.timeout_seconds = timeout_seconds or Config.SCRAPER_TIMEOUT_SECONDS

    @property
    def browser_pool(self) -> BrowserPool:
        if self._browser_pool is None:
            self._browser_pool = get_browser_pool()
        return self._browser_pool

    async def extract(self, url: str, options: Optional[ExtractionOptions] = None) -> ExtractionResult:
        """
        Fetch a page, escalating through strategies.

        Args:
            url: http(s) URL
            options: Per-call overrides

        Returns:
            ExtractionResult naming the successful strategy

        Raises:
            ExtractionError: Invalid URL or all strategies failed
        """
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            raise ExtractionError(f"Invalid URL: {url!r}")

        options = options or ExtractionOptions()
        max_retries = self.max_retries if options.max_retries is None else options.max_retries
        timeout = options.timeout_seconds or self.timeout_seconds
        user_agent = options.user_agent or get_random_user_agent()
        started = time.perf_counter()
        failures = 0
        last_error: Optional[str] = None

        if options.force_strategy != STRATEGY_BROWSER:
            http_strategies = (
                (STRATEGY_BASIC, {"User-Agent": user_agent}),
                (STRATEGY_HEADERS, {**FULL_HEADERS, "User-Agent": user_agent}),
            )
            for name, headers in http_strategies:
                fetched, failed, error = await self._run_http_strategy(
                    name, url, headers, timeout, max_retries
                )
                failures += failed
                if fetched is not None:
                    html, status, final_url = fetched
                    return self._build_result(html, final_url, name, status, started, failures)
                last_error = error
                logger.info(f"Strategy {name} exhausted for {url}: {error}")

            if options.force_strategy == "fetch":
                raise ExtractionError(
                    f"All fetch strategies failed for {url}: {last_error}",
                    attempts=failures,
                    last_error=last_error,
                )

        logger.info(f"Escalating to browser for {url} (previous error: {last_error})")
        try:
            page = await scrape_with_browser(
                self.browser_pool,
                url,
                user_agent,
                timeout_seconds=timeout * 2,
                wait_for_selector=options.wait_for_selector,
            )
        except Exception as e:
            failures += 1
            logger.error(
                f"All extraction strategies failed for {url} after {failures} attempts: {e}"
            )
            raise ExtractionError(
                f"All extraction strategies failed: {e}",
                attempts=failures,
                last_error=str(e),
            ) from e

        return self._build_result(page.html, page.final_url, STRATEGY_BROWSER, page.status, started, failures)

    async def _run_http_strategy(
        self,
        name: str,
        url: str,
        headers: Dict[str, str],
        timeout: float,
        max_retries: int,
    ) -> Tuple[Optional[Tuple[str, int, str]], int, Optional[str]]:
        """
        Run one HTTP strategy with retries.

        Returns:
            (fetched or None, failed attempt count, last error message)
        """
        failed = 0

        def _log_retry(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception() if retry_state.outcome else None
            logger.debug(f"{name} attempt {retry_state.attempt_number} failed for {url}: {error}")

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(0, max_retries) + 1),
            wait=wait_exponential(multiplier=RETRY_BASE_SECONDS, max=RETRY_CAP_SECONDS),
            retry=retry_if_exception_type((FetchError, httpx.HTTPError)),
            before_sleep=_log_retry,
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    failed = attempt.retry_state.attempt_number - 1
                    fetched = await self._fetch(url, headers, timeout)
            return fetched, failed, None
        except (FetchError, httpx.HTTPError) as e:
            return None, failed + 1, str(e) or type(e).__name__

    async def _fetch(self, url: str, headers: Dict[str, str], timeout: float) -> Tuple[str, int, str]:
        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            timeout=timeout,
        ) as client:
            response = await client.get(url, headers=headers)
        if response.status_code >= 400:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status=response.status_code,
            )
        return response.text, response.status_code, str(response.url)

    def _build_result(
        self,
        html: str,
        final_url: str,
        strategy: str,
        status: int,
        started: float,
        retries: int,
    ) -> ExtractionResult:
        clean_text, title = clean_html(html)
        latency_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            f"Extracted {len(clean_text)} chars via {strategy} "
            f"(status={status}, retries={retries}, latency_ms={latency_ms})"
        )
        return ExtractionResult(
            html=html,
            clean_text=clean_text,
            title=title,
            final_url=final_url,
            meta=ExtractionMeta(
                strategy=strategy,
                status=status,
                latency_ms=latency_ms,
                retries=retries,
                success=True,
            ),
        )

    async def check_url_accessibility(self, url: str) -> Dict[str, Any]:
        """
        Quick HEAD request before extraction.

        Returns:
            {"accessible": bool, "reason": str, "suggested_strategy": str}
        """
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=True,
                timeout=ACCESSIBILITY_TIMEOUT_SECONDS,
            ) as client:
                response = await client.head(url, headers={"User-Agent": get_random_user_agent()})
        except httpx.HTTPError:
            return {
                "accessible": False,
                "reason": "Network error or timeout",
                "suggested_strategy": STRATEGY_BROWSER,
            }

        status = response.status_code
        if status == 403:
            return {"accessible": False, "reason": "Access forbidden (403)", "suggested_strategy": STRATEGY_BROWSER}
        if status == 429:
            return {"accessible": False, "reason": "Rate limited (429)", "suggested_strategy": "wait"}
        if status >= 500:
            return {"accessible": False, "reason": f"Server error ({status})", "suggested_strategy": "retry"}
        return {"accessible": True}
