import asyncio
import os
import sys

import pytest

# Add repo root to python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.ragcrawler.config import CrawlOptions, HttpConfig
from src.ragcrawler.errors import FetchError


def make_page(title, breadcrumb=(), content="", links=()):
    """Oopy-style page: breadcrumb, the 'Search' separator, then the content.

    Links live in <nav>, which the parser strips from the text but the link
    extractor still sees.
    """
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        "<html><head><title>{title}</title><script>window.__OOPY__ = {{}}</script></head>"
        "<body><div class=\"breadcrumb\">{crumbs}</div><div>Search</div>"
        "<div class=\"page\">{content}</div><nav>{anchors}</nav></body></html>"
    ).format(title=title, crumbs=" / ".join(breadcrumb), content=content, anchors=anchors)


class FakeFetcher:
    """Scripted in-memory fetcher.

    `pages` maps URL to HTML, or to an exception instance that fetch() raises.
    Unknown URLs raise FetchError like a 404 would.
    """

    def __init__(self, pages, latency=0.01):
        self.pages = dict(pages)
        self.latency = latency
        self.fetched = []
        self.rendered = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, url):
        self.fetched.append(url)
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.latency)
            page = self.pages.get(url)
            if page is None:
                raise FetchError(url, "Non-retryable response HTTP 404", status=404)
            if isinstance(page, BaseException):
                raise page
            return page
        finally:
            self.in_flight -= 1

    async def fetch_rendered(self, url):
        self.rendered.append(url)
        return self.pages.get(url + "#rendered") or await self.fetch(url)


@pytest.fixture
def http_config():
    return HttpConfig(
        user_agent="TestBot/1.0",
        timeout=5,
        retry_count=3,
        retry_delay=0,
        retry_backoff_factor=2.0,
        circuit_breaker_threshold=2,
        circuit_breaker_timeout=60,
    )


@pytest.fixture
def crawl_options():
    return CrawlOptions(
        max_depth=3,
        max_pages=50,
        domain_restriction=frozenset(),
        crawl_delay_ms=0,
        concurrency=3,
        include_parent_pages=False,
    )
