from __future__ import annotations
from urllib.parse import urljoin, urlsplit, urlunsplit
from typing import Iterable, List
from bs4 import BeautifulSoup

from .models import LinkType, PageLink

# ------------------ URL helpers ------------------

def normalize_url(url: str) -> str:
    """Canonical form used as the visited-set key.

    Drops query and fragment and strips one trailing slash. Malformed URLs are
    returned unchanged.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    normalized = urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, "", ""))
    if normalized.endswith("/"):
        normalized = normalized[:-1]
    return normalized

def _hostname(url: str) -> str:
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""

def is_internal_link(url: str, base_hostname: str) -> bool:
    host = _hostname(url)
    base_hostname = base_hostname.lower()
    return bool(host) and (host == base_hostname or host.endswith("." + base_hostname))

def is_allowed_domain(url: str, allowed_domains: Iterable[str]) -> bool:
    """True if the URL's host is one of the allowed domains or a subdomain of one.

    An empty allow-list means unrestricted.
    """
    allowed_domains = list(allowed_domains or ())
    if not allowed_domains:
        return True
    host = _hostname(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in allowed_domains)

def is_valid_href(href: str | None) -> bool:
    if not href:
        return False
    href = href.strip()
    return bool(href) and not href.lower().startswith(("#", "mailto:", "tel:"))

# ------------------ extractors ------------------

# Only web pages are followed; javascript:, data: and other schemes are dropped
# after resolution.
PAGE_SCHEMES = {"http", "https"}

def extract_links(html: str, base_url: str) -> List[PageLink]:
    """Classified candidate links found in a page, in document order."""
    soup = BeautifulSoup(html or "", "html.parser")
    base_hostname = _hostname(base_url)
    links: List[PageLink] = []

    for a in soup.select("a[href]"):
        href = a.get("href")
        if not is_valid_href(href):
            continue
        href = href.strip()
        try:
            absolute_url = urljoin(base_url, href)
            # urljoin is lenient; force a parse so broken hosts are dropped here
            parts = urlsplit(absolute_url)
            if parts.scheme.lower() not in PAGE_SCHEMES or not parts.netloc:
                continue
        except ValueError:
            continue

        text = a.get_text(strip=True)
        link_type = LinkType.INTERNAL if is_internal_link(absolute_url, base_hostname) else LinkType.EXTERNAL
        links.append(PageLink(url=absolute_url, text=text or href, type=link_type))

    return links
