"""
Page processing: fetch, parse, hierarchy policy, duplicate check, document.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from .errors import CrawlAbortedError, FetchError, ParseError
from .frontier import Frontier
from .hashing import ContentDedupIndex, generate_document_id
from .models import (
    CrawledDocument,
    CrawlMetadata,
    CrawlSession,
    FrontierEntry,
    ParsedPage,
    SkipReason,
    generate_crawl_id,
    utc_now_iso,
)
from .parse import extract_links, normalize_url
from .parsers import ParserManager, ParserStrategy

logger = logging.getLogger(__name__)


@dataclass
class CrawlState:
    """Everything one crawl_site() call owns. Built fresh for every crawl."""
    session: CrawlSession
    frontier: Frontier = field(default_factory=Frontier)
    dedup: ContentDedupIndex = field(default_factory=ContentDedupIndex)
    # Breadcrumb length of the seed page; None until the seed is parsed
    start_breadcrumb_depth: Optional[int] = None

    @property
    def options(self):
        return self.session.options

    @property
    def document_count(self) -> int:
        return len(self.session.documents)


class PageProcessor:
    """Turns one frontier entry into a CrawledDocument, a skip, or an error."""

    def __init__(self, fetcher, parsers: ParserManager | None = None, render_dynamic: bool = False):
        self.fetcher = fetcher
        self.parsers = parsers or ParserManager()
        self.render_dynamic = render_dynamic

    def _parse(self, strategy: ParserStrategy, html: str, url: str, dynamic: bool = False) -> ParsedPage:
        try:
            if dynamic:
                return strategy.parse_dynamic(html, url)
            return strategy.parse_static(html, url)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(url, f"{strategy.name} parser failed: {type(e).__name__}: {e}") from e

    async def _fetch_and_parse(self, entry: FrontierEntry):
        html = await self.fetcher.fetch(entry.url)

        try:
            strategy = self.parsers.select_strategy(html, entry.url)
        except Exception as e:
            raise ParseError(entry.url, f"Parser selection failed: {e}") from e
        parsed = self._parse(strategy, html, entry.url)

        if self.render_dynamic and strategy.should_render(html):
            logger.info(f"Rendering {entry.url} with browser ({strategy.name})")
            html = await self.fetcher.fetch_rendered(entry.url)
            parsed = self._parse(strategy, html, entry.url, dynamic=True)

        return html, parsed

    def _skip_reason(self, entry: FrontierEntry, parsed: ParsedPage, state: CrawlState) -> Optional[SkipReason]:
        if entry.depth == 0:
            return None
        start_depth = state.start_breadcrumb_depth or 0
        relative_depth = len(parsed.breadcrumb) - start_depth
        if relative_depth < 0 and not state.options.include_parent_pages:
            return SkipReason.PARENT_PAGE
        return None

    async def process(self, entry: FrontierEntry, state: CrawlState) -> Optional[CrawledDocument]:
        """Process one entry. Returns the stored document, or None if skipped, duplicate or failed.

        Exactly one statistics counter is incremented per call. A FetchError on
        the seed (depth 0) raises CrawlAbortedError instead.
        """
        session = state.session
        stats = session.statistics
        started = time.perf_counter()

        try:
            html, parsed = await self._fetch_and_parse(entry)
        except FetchError as e:
            stats.record_error()
            if entry.depth == 0:
                raise CrawlAbortedError(f"Could not fetch start URL: {e}", session=session) from e
            logger.warning(f"Fetch failed, skipping page: {e}")
            return None
        except ParseError as e:
            stats.record_error()
            logger.warning(f"Parse failed, skipping page: {e}")
            return None

        if entry.depth == 0:
            state.start_breadcrumb_depth = len(parsed.breadcrumb)
            logger.debug(f"Start breadcrumb depth {state.start_breadcrumb_depth}: {list(parsed.breadcrumb)}")

        reason = self._skip_reason(entry, parsed, state)
        if reason is not None:
            stats.record_skipped()
            logger.info(f"Skipped ({reason.value}): {entry.url} breadcrumb={list(parsed.breadcrumb)}")
            return None

        if not state.dedup.check_page(parsed.title, parsed.content):
            stats.record_duplicate()
            logger.info(f"Skipped ({SkipReason.DUPLICATE_CONTENT.value}): {entry.url} title={parsed.title!r}")
            return None

        links = extract_links(html, entry.url)
        processing_time_ms = (time.perf_counter() - started) * 1000
        normalized = normalize_url(entry.url)

        document = CrawledDocument(
            id=generate_document_id(normalized),
            url=entry.url,
            title=parsed.title,
            content=parsed.content,
            breadcrumb=tuple(parsed.breadcrumb),
            depth=entry.depth,
            parent_url=entry.parent_url,
            discovered_at=utc_now_iso(),
            links=links,
            crawl_metadata=CrawlMetadata(
                crawl_id=generate_crawl_id(),
                session_id=session.id,
                discovery_method="initial" if entry.depth == 0 else "link",
                processing_time_ms=processing_time_ms,
                error_count=0,
            ),
        )
        session.documents[normalized] = document
        stats.record_processed(processing_time_ms)
        logger.info(f"Crawled [{entry.depth}] {parsed.title} ({len(parsed.content)} chars, {len(links)} links): {entry.url}")
        return document
