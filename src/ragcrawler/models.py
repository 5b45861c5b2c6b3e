"""
Data models shared by the crawler: frontier entries, links, crawled documents
and the crawl session with its statistics.
"""
from __future__ import annotations
import time
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .config import CrawlOptions


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_session_id() -> str:
    return f"session-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def generate_crawl_id() -> str:
    return f"crawl-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


class LinkType(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class CrawlStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class SkipReason(str, Enum):
    """Why a dequeued entry produced no document without being an error."""
    DEPTH_LIMIT = "depth_limit"
    DOMAIN_RESTRICTION = "domain_restriction"
    PARENT_PAGE = "parent_page"
    DUPLICATE_CONTENT = "duplicate_content"


@dataclass
class PageLink:
    url: str
    text: str
    type: LinkType
    # Set by the frontier once the link has been admitted
    discovered: bool = False

    @property
    def is_internal(self) -> bool:
        return self.type == LinkType.INTERNAL


@dataclass(frozen=True)
class FrontierEntry:
    url: str
    depth: int = 0
    parent_url: Optional[str] = None


@dataclass(frozen=True)
class ParsedPage:
    """What a parser strategy extracts from one HTML page."""
    title: str
    content: str
    breadcrumb: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CrawlMetadata:
    crawl_id: str
    session_id: str
    discovery_method: str  # "initial" for the seed, "link" otherwise
    processing_time_ms: float
    error_count: int = 0


@dataclass(frozen=True)
class CrawledDocument:
    id: str
    url: str
    title: str
    content: str
    breadcrumb: Tuple[str, ...]
    depth: int
    parent_url: Optional[str]
    discovered_at: str
    links: List[PageLink]
    crawl_metadata: CrawlMetadata

    @property
    def word_count(self) -> int:
        return len(self.content)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["breadcrumb"] = list(self.breadcrumb)
        data["word_count"] = self.word_count
        for link in data["links"]:
            link["type"] = LinkType(link["type"]).value
        return data


@dataclass
class CrawlStatistics:
    processed_pages: int = 0
    skipped_pages: int = 0
    error_pages: int = 0
    duplicate_pages: int = 0
    average_processing_time: float = 0.0  # milliseconds, over processed pages

    @property
    def total_pages(self) -> int:
        """Number of frontier entries accounted for so far."""
        return self.processed_pages + self.skipped_pages + self.error_pages + self.duplicate_pages

    def record_processed(self, processing_time_ms: float) -> None:
        self.processed_pages += 1
        total_time = self.average_processing_time * (self.processed_pages - 1)
        self.average_processing_time = (total_time + processing_time_ms) / self.processed_pages

    def record_skipped(self) -> None:
        self.skipped_pages += 1

    def record_error(self) -> None:
        self.error_pages += 1

    def record_duplicate(self) -> None:
        self.duplicate_pages += 1

    def as_dict(self) -> Dict[str, float]:
        return {
            "total_pages": self.total_pages,
            "processed_pages": self.processed_pages,
            "skipped_pages": self.skipped_pages,
            "error_pages": self.error_pages,
            "duplicate_pages": self.duplicate_pages,
            "average_processing_time": self.average_processing_time,
        }


@dataclass
class CrawlSession:
    """State of one crawl_site() call.

    Owns the document store (normalized URL -> CrawledDocument) for its lifetime.
    The status leaves RUNNING exactly once.
    """
    start_url: str
    options: CrawlOptions
    id: str = field(default_factory=generate_session_id)
    start_time: str = field(default_factory=utc_now_iso)
    end_time: Optional[str] = None
    status: CrawlStatus = CrawlStatus.RUNNING
    statistics: CrawlStatistics = field(default_factory=CrawlStatistics)
    documents: Dict[str, CrawledDocument] = field(default_factory=dict)
    _started: float = field(default_factory=time.monotonic, repr=False)
    _finished: Optional[float] = field(default=None, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.status != CrawlStatus.RUNNING

    @property
    def duration(self) -> float:
        """Seconds elapsed, up to now for a running session."""
        end = self._finished if self._finished is not None else time.monotonic()
        return end - self._started

    def finish(self, status: CrawlStatus) -> None:
        if self.is_terminal:
            raise RuntimeError(f"Session {self.id} already finished with status {self.status.value}")
        if status == CrawlStatus.RUNNING:
            raise ValueError("A session can only finish as completed or error")
        self.status = status
        self.end_time = utc_now_iso()
        self._finished = time.monotonic()

    def document_list(self) -> List[CrawledDocument]:
        return list(self.documents.values())

    def get_document(self, url: str) -> Optional[CrawledDocument]:
        from .parse import normalize_url
        return self.documents.get(normalize_url(url))
