"""
Crawl scheduler.

Pulls entries from the frontier and keeps at most `concurrency` page units in
flight (a sliding window: a new unit starts as soon as any unit completes).
Links of each processed page are offered back to the frontier at depth + 1.
"""
from __future__ import annotations
import asyncio
import logging
import time
from typing import Dict, Optional

from .config import CrawlOptions, HttpConfig
from .errors import CrawlAbortedError
from .fetch import HtmlFetcher
from .models import CrawlSession, CrawlStatus, FrontierEntry, SkipReason
from .parse import is_allowed_domain
from .parsers import ParserManager
from .processor import CrawlState, PageProcessor

logger = logging.getLogger(__name__)


class SiteCrawler:
    """Runs crawl sessions with one fetcher and parser manager.

    The crawler holds no per-session state; every run() builds its own
    CrawlState, so one instance can run several sessions, even concurrently.
    """

    def __init__(self, fetcher, options: CrawlOptions | None = None,
                 parser_manager: ParserManager | None = None, render_dynamic: bool = False):
        self.options = options or CrawlOptions()
        self.processor = PageProcessor(fetcher, parser_manager, render_dynamic=render_dynamic)

    def _admit(self, entry: FrontierEntry, state: CrawlState) -> bool:
        """Dequeue-time checks. A rejected entry is counted as skipped."""
        options = state.options
        if entry.depth > options.max_depth:
            reason = SkipReason.DEPTH_LIMIT
        elif not is_allowed_domain(entry.url, options.domain_restriction):
            reason = SkipReason.DOMAIN_RESTRICTION
        else:
            return True
        state.session.statistics.record_skipped()
        logger.info(f"Skipped ({reason.value}): {entry.url} depth={entry.depth}")
        return False

    def _has_budget(self, state: CrawlState, in_flight: int) -> bool:
        # Every in-flight unit may still produce a document
        return state.document_count + in_flight < state.options.max_pages

    async def _wait_for_delay(self, last_dispatch: Optional[float]):
        delay = self.options.crawl_delay_ms / 1000
        if last_dispatch is None or delay <= 0:
            return
        remaining = delay - (time.monotonic() - last_dispatch)
        if remaining > 0:
            await asyncio.sleep(remaining)

    async def run(self, start_url: str) -> CrawlSession:
        """Crawl from start_url until the frontier is exhausted or max_pages documents exist.

        Raises CrawlAbortedError (carrying the session) if the start URL cannot
        be fetched. In-flight units are always drained before the session
        leaves the running state.
        """
        options = self.options
        session = CrawlSession(start_url=start_url, options=options)
        state = CrawlState(session=session)
        state.frontier.seed(start_url)

        logger.info(
            f"Starting crawl {session.id}: {start_url} "
            f"(max_depth={options.max_depth}, max_pages={options.max_pages}, concurrency={options.concurrency})"
        )

        in_flight: Dict[asyncio.Task, FrontierEntry] = {}
        last_dispatch: Optional[float] = None

        try:
            while True:
                while state.frontier and len(in_flight) < options.concurrency and self._has_budget(state, len(in_flight)):
                    entry = state.frontier.dequeue()
                    if not self._admit(entry, state):
                        continue
                    await self._wait_for_delay(last_dispatch)
                    task = asyncio.create_task(self.processor.process(entry, state))
                    in_flight[task] = entry
                    last_dispatch = time.monotonic()

                if not in_flight:
                    # Frontier exhausted or page budget reached
                    break

                done, _ = await asyncio.wait(in_flight.keys(), return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    entry = in_flight.pop(task)
                    document = task.result()
                    if document is not None:
                        state.frontier.offer(document.links, at_depth=entry.depth + 1, parent_url=entry.url)
        except CrawlAbortedError as e:
            await self._drain(in_flight)
            session.finish(CrawlStatus.ERROR)
            logger.error(f"Crawl {session.id} aborted: {e}")
            if e.session is None:
                e.session = session
            raise
        except Exception:
            await self._drain(in_flight)
            session.finish(CrawlStatus.ERROR)
            logger.exception(f"Crawl {session.id} failed")
            raise

        session.finish(CrawlStatus.COMPLETED)
        stats = session.statistics
        logger.info(
            f"Crawl {session.id} completed in {session.duration:.2f}s: "
            f"{stats.processed_pages} processed, {stats.skipped_pages} skipped, "
            f"{stats.duplicate_pages} duplicates, {stats.error_pages} errors"
        )
        return session

    async def _drain(self, in_flight: Dict[asyncio.Task, FrontierEntry]):
        if not in_flight:
            return
        logger.debug(f"Draining {len(in_flight)} in-flight units")
        results = await asyncio.gather(*in_flight.keys(), return_exceptions=True)
        for entry, result in zip(in_flight.values(), results):
            if isinstance(result, BaseException):
                logger.warning(f"In-flight unit for {entry.url} failed during drain: {result}")
        in_flight.clear()


async def crawl_site(start_url: str, options: CrawlOptions | None = None,
                     http_config: HttpConfig | None = None, fetcher=None,
                     parser_manager: ParserManager | None = None) -> CrawlSession:
    """Crawl a site and return the finished CrawlSession.

    Without an injected fetcher an HtmlFetcher is opened for the duration of
    the crawl and closed afterwards.
    """
    http_config = http_config or HttpConfig()
    if fetcher is not None:
        crawler = SiteCrawler(fetcher, options, parser_manager, render_dynamic=http_config.enable_js_rendering)
        return await crawler.run(start_url)

    async with HtmlFetcher(http_config) as html_fetcher:
        crawler = SiteCrawler(html_fetcher, options, parser_manager, render_dynamic=http_config.enable_js_rendering)
        return await crawler.run(start_url)
