from __future__ import annotations
import os
import random
from dataclasses import dataclass, field, replace as _dc_replace
from typing import Iterable


def _env_list(name: str) -> frozenset[str]:
    return frozenset(d.strip().lower() for d in os.getenv(name, "").split(",") if d.strip())


@dataclass
class HttpConfig:
    user_agent: str = os.getenv("RAGCRAWLER_UA", "RagCrawler/1.0 (+https://github.com/ragcrawler/ragcrawler)")
    timeout: float = float(os.getenv("RAGCRAWLER_TIMEOUT", "30"))
    http_backend: str = os.getenv("RAGCRAWLER_HTTP_BACKEND", "httpx")
    enable_http2: bool = os.getenv("RAGCRAWLER_HTTP2", "1") == "1"
    # Browser rendering for pages a parser strategy flags as client-rendered
    enable_js_rendering: bool = os.getenv("RAGCRAWLER_JS", "0") == "1"
    # Retry configuration
    retry_count: int = int(os.getenv("RAGCRAWLER_MAX_RETRIES", "3"))
    retry_delay: float = float(os.getenv("RAGCRAWLER_RETRY_DELAY", "1.0"))
    retry_backoff_factor: float = float(os.getenv("RAGCRAWLER_RETRY_BACKOFF", "2.0"))
    # Circuit Breaker configuration
    circuit_breaker_threshold: int = int(os.getenv("RAGCRAWLER_CB_THRESHOLD", "5"))
    circuit_breaker_timeout: float = float(os.getenv("RAGCRAWLER_CB_TIMEOUT", "60.0"))

    def __post_init__(self):
        self.http_backend = (self.http_backend or "httpx").lower()
        if self.http_backend not in ("httpx", "aiohttp"):
            raise ValueError(f"Unknown HTTP backend: {self.http_backend}")
        if self.retry_count < 1:
            raise ValueError("retry_count must be at least 1")


@dataclass(frozen=True)
class CrawlOptions:
    """Per-session crawl limits. Immutable once a crawl has started."""
    max_depth: int = int(os.getenv("RAGCRAWLER_MAX_DEPTH", "3"))
    max_pages: int = int(os.getenv("RAGCRAWLER_MAX_PAGES", "50"))
    domain_restriction: frozenset = field(default_factory=lambda: _env_list("RAGCRAWLER_ALLOWED_DOMAINS"))
    crawl_delay_ms: int = int(os.getenv("RAGCRAWLER_CRAWL_DELAY_MS", "1000"))
    concurrency: int = int(os.getenv("RAGCRAWLER_CONCURRENCY", "3"))
    include_parent_pages: bool = os.getenv("RAGCRAWLER_INCLUDE_PARENTS", "0") == "1"

    def __post_init__(self):
        # Accept any iterable of domains; store a normalized frozenset
        domains = self.domain_restriction or ()
        if isinstance(domains, str):
            domains = [domains]
        object.__setattr__(
            self,
            "domain_restriction",
            frozenset(d.strip().lower() for d in domains if d and d.strip()),
        )
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if self.crawl_delay_ms < 0:
            raise ValueError("crawl_delay_ms must be >= 0")

    def replace(self, **changes) -> "CrawlOptions":
        return _dc_replace(self, **changes)


def parse_domain_list(value: str | Iterable[str] | None) -> frozenset[str]:
    """Split a comma-separated domain string (as given on the command line)."""
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(d.strip().lower() for d in value if d.strip())


# User agent strings for different scenarios
USER_AGENTS = {
    "default": HttpConfig.user_agent,
    "chrome": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "firefox": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "safari": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "mobile": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
}

def get_user_agent(ua_type: str = "default") -> str:
    """Get a user agent string by type or return a random one if 'random' is specified."""
    if ua_type == "random":
        return random.choice(list(USER_AGENTS.values()))
    return USER_AGENTS.get(ua_type, USER_AGENTS["default"])
