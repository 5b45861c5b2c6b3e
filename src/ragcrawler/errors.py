"""
Exception types raised by the crawler and its collaborators.

Per-page failures (FetchError, ParseError) are counted against the page and
never end a crawl. CrawlAbortedError is the only error that escapes
crawl_site().
"""
from __future__ import annotations
from typing import Optional


class CrawlerError(Exception):
    """Base class for crawler errors."""


class FetchError(CrawlerError):
    """A page could not be fetched, after retries or because its host is short-circuited."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        super().__init__(f"{message} (URL: {url})")
        self.url = url
        self.status = status


class ParseError(CrawlerError):
    """A parser strategy failed on a fetched page."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{message} (URL: {url})")
        self.url = url


class CrawlAbortedError(CrawlerError):
    """The crawl could not continue; the session is left in the error state."""

    def __init__(self, message: str, session=None):
        super().__init__(message)
        self.session = session
