"""
In-memory crawl frontier: a FIFO queue of FrontierEntry plus the visited set.

A URL is marked visited when it is admitted, not when it is fetched, so every
normalized URL enters the queue at most once per crawl. All methods are
synchronous; on a single asyncio event loop admission is atomic per URL.
"""
from __future__ import annotations
import logging
from collections import deque
from typing import Deque, Iterable, Optional, Set

from .models import FrontierEntry, PageLink
from .parse import normalize_url

logger = logging.getLogger(__name__)


class Frontier:

    def __init__(self):
        self._queue: Deque[FrontierEntry] = deque()
        self._visited: Set[str] = set()

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    def is_visited(self, url: str) -> bool:
        return normalize_url(url) in self._visited

    def seed(self, url: str) -> FrontierEntry:
        """Mark the start URL visited and enqueue it at depth 0."""
        self._visited.add(normalize_url(url))
        entry = FrontierEntry(url=url, depth=0, parent_url=None)
        self._queue.append(entry)
        logger.debug(f"seed: {url}")
        return entry

    def offer(self, links: Iterable[PageLink], at_depth: int, parent_url: Optional[str]) -> int:
        """Admit unseen internal links at `at_depth`. Returns how many were admitted."""
        added = 0
        for link in links:
            if not link.is_internal or link.discovered:
                continue
            normalized = normalize_url(link.url)
            if normalized in self._visited:
                continue
            self._visited.add(normalized)
            self._queue.append(FrontierEntry(url=link.url, depth=at_depth, parent_url=parent_url))
            link.discovered = True
            added += 1
        if added:
            logger.debug(f"offer: queued {added} links at depth {at_depth} from {parent_url} (qsize={len(self._queue)})")
        return added

    def dequeue(self) -> Optional[FrontierEntry]:
        try:
            return self._queue.popleft()
        except IndexError:
            return None

    def get_stats(self) -> dict:
        return {
            "queue_size": len(self._queue),
            "visited_count": len(self._visited),
        }
