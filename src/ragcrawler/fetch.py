"""
HTTP fetch collaborator: retrieves page HTML with retries, backoff and a
per-host circuit breaker.

httpx (HTTP/2, shared connection pool) is the default backend; aiohttp is
available through HttpConfig.http_backend. Browser rendering goes through
Playwright (pip install .[js] && playwright install).
"""
from __future__ import annotations
import asyncio
import logging
from typing import Dict, Optional, Tuple

import aiohttp
import httpx

from .circuit_breaker import CircuitBreakerRegistry
from .config import HttpConfig
from .errors import FetchError

logger = logging.getLogger(__name__)


def should_retry_status_code(status_code: int) -> bool:
    """Determine if a status code is worth another attempt."""
    if 500 <= status_code < 600:
        return True  # Server errors
    # 408 timeout, 420/429 rate limited, 423 locked, 451 possibly temporary geo-blocking
    return status_code in (408, 420, 423, 429, 451)


def _get_default_headers(cfg: HttpConfig) -> Dict[str, str]:
    return {
        "User-Agent": cfg.user_agent,
        "Accept-Encoding": "gzip, deflate, br",  # br = Brotli
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }


class HtmlFetcher:
    """Fetches HTML pages for the crawler.

    Use as an async context manager so the underlying client is shared by all
    requests of a crawl::

        async with HtmlFetcher(HttpConfig()) as fetcher:
            html = await fetcher.fetch("https://example.com/")
    """

    def __init__(self, cfg: HttpConfig | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg or HttpConfig()
        self.breakers = CircuitBreakerRegistry(
            failure_threshold=self.cfg.circuit_breaker_threshold,
            recovery_timeout=self.cfg.circuit_breaker_timeout,
        )
        # Injected transport is used by tests (httpx.MockTransport)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HtmlFetcher":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def open(self):
        if self._client is not None or self._session is not None:
            return
        headers = _get_default_headers(self.cfg)
        if self.cfg.http_backend == "aiohttp":
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout)
            self._session = aiohttp.ClientSession(headers=headers, timeout=timeout)
        else:
            self._client = httpx.AsyncClient(
                http2=self.cfg.enable_http2,
                timeout=httpx.Timeout(self.cfg.timeout),
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            )

    async def close(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _get(self, url: str) -> Tuple[int, str]:
        """Single request. Returns (status, text); network errors propagate."""
        if self._session is not None:
            async with self._session.get(url, allow_redirects=True) as resp:
                text = await resp.text(errors="ignore")
                return resp.status, text
        if self._client is None:
            await self.open()
        response = await self._client.get(url)
        return response.status_code, response.text

    async def fetch(self, url: str) -> str:
        """Return the page HTML or raise FetchError once retries are exhausted."""
        breaker = self.breakers.for_url(url)
        if not breaker.allow_request():
            raise FetchError(url, "Circuit breaker open for host")

        attempts = self.cfg.retry_count
        last_error = None
        last_status = None

        for attempt in range(1, attempts + 1):
            try:
                status, text = await self._get(url)
            except httpx.InvalidURL as e:
                breaker.release_trial()
                raise FetchError(url, f"Invalid URL: {e}") from e
            except (httpx.HTTPError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_error = f"{type(e).__name__}: {e}"
                last_status = None
            else:
                if 200 <= status < 300:
                    breaker.record_success()
                    return text
                last_error = f"HTTP {status}"
                last_status = status
                if not should_retry_status_code(status):
                    # The host answered; a 404 says nothing about its health
                    breaker.record_success()
                    raise FetchError(url, f"Non-retryable response {last_error}", status=status)

            if attempt < attempts:
                wait_time = self.cfg.retry_delay * (self.cfg.retry_backoff_factor ** (attempt - 1))
                logger.warning(f"Fetch attempt {attempt}/{attempts} failed for {url}: {last_error}. Retrying in {wait_time:.2f}s...")
                await asyncio.sleep(wait_time)

        breaker.record_failure()
        logger.error(f"Fetch failed after {attempts} attempts for {url}: {last_error}")
        raise FetchError(url, f"Failed after {attempts} attempts: {last_error}", status=last_status)

    async def fetch_rendered(self, url: str) -> str:
        """Return the DOM of a page after client-side rendering in headless Chromium."""
        try:
            from playwright.async_api import async_playwright
        except ImportError as e:
            raise FetchError(url, "Playwright is not installed; install the 'js' extra") from e

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                context = await browser.new_context(user_agent=self.cfg.user_agent)
                page = await context.new_page()
                try:
                    resp = await page.goto(url, timeout=self.cfg.timeout * 1000, wait_until="networkidle")
                    if resp is not None and resp.status >= 400:
                        raise FetchError(url, f"Rendered response HTTP {resp.status}", status=resp.status)
                    return await page.content()
                finally:
                    await context.close()
                    await browser.close()
        except FetchError:
            raise
        except Exception as e:
            raise FetchError(url, f"Rendering failed: {e}") from e
