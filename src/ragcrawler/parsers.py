"""
Parser strategies: turn a fetched HTML page into title, content and breadcrumb.

ParserManager holds an ordered list of strategies; the first whose
is_applicable() matches wins, and GenericParser (always applicable) is kept
last as the fallback.
"""
from __future__ import annotations
import re
from typing import List, Optional, Sequence

from bs4 import BeautifulSoup

from .models import ParsedPage

DEFAULT_TITLE = "Untitled"

_WHITESPACE = re.compile(r"\s+")


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def _extract_title(soup: BeautifulSoup) -> str:
    title = soup.title.get_text(strip=True) if soup.title else ""
    if not title:
        h1 = soup.find("h1")
        title = h1.get_text(strip=True) if h1 else ""
    return title or DEFAULT_TITLE


def _body_text(soup: BeautifulSoup) -> str:
    # html.parser does not synthesize <body> for fragments
    return (soup.body or soup).get_text().strip()


class ParserStrategy:
    """Base class for site-specific parsers."""
    name = "base"

    def is_applicable(self, html: str, url: str) -> bool:
        raise NotImplementedError

    def parse_static(self, html: str, url: str) -> ParsedPage:
        raise NotImplementedError

    def should_render(self, html: str) -> bool:
        """True if the static HTML is an empty client-side shell."""
        return False

    def parse_dynamic(self, html: str, url: str) -> ParsedPage:
        """Parse browser-rendered HTML. Rendered DOM parses like static HTML by default."""
        return self.parse_static(html, url)


class OopyParser(ParserStrategy):
    """Oopy-hosted help sites: breadcrumb and body are separated by the 'Search' keyword."""
    name = "oopy"

    CONTENT_SEPARATOR = "Search"
    MARKERS = (
        "window.__OOPY__",
        "oopy.lazyrockets.com",
        "oopy-footer",
        "OopyFooter_container",
    )

    def is_applicable(self, html: str, url: str) -> bool:
        if "oopy.io" in (url or ""):
            return True
        return any(marker in (html or "") for marker in self.MARKERS)

    def parse_static(self, html: str, url: str) -> ParsedPage:
        soup = BeautifulSoup(html or "", "html.parser")
        for tag in soup.select("script, style, nav, footer, aside"):
            tag.decompose()

        title = _extract_title(soup)
        for tag in soup.select("title, h1"):
            tag.decompose()

        parts = _body_text(soup).split(self.CONTENT_SEPARATOR)
        if len(parts) == 1:
            return ParsedPage(title=title, content="", breadcrumb=())

        breadcrumb_text = parts[0].strip()
        main_content = self.CONTENT_SEPARATOR.join(parts[1:])
        breadcrumb = tuple(item.strip() for item in breadcrumb_text.split("/") if item.strip())

        return ParsedPage(title=title, content=_collapse_whitespace(main_content), breadcrumb=breadcrumb)


class GenericParser(ParserStrategy):
    """Standard HTML pages. No breadcrumb; main content chosen by selector priority."""
    name = "generic"

    CONTENT_SELECTORS = (
        "main",
        "article",
        ".content",
        ".post-content",
        ".entry-content",
        "#content",
        "#main-content",
    )
    MIN_CONTENT_LENGTH = 100
    APP_MOUNTS = ("#root", "#__next", "#app")

    def is_applicable(self, html: str, url: str) -> bool:
        return True

    def parse_static(self, html: str, url: str) -> ParsedPage:
        soup = BeautifulSoup(html or "", "html.parser")
        for tag in soup.select("script, style, nav, footer, aside, header"):
            tag.decompose()

        title = _extract_title(soup)
        content = self._extract_main_content(soup)
        return ParsedPage(title=title, content=_collapse_whitespace(content), breadcrumb=())

    def _extract_main_content(self, soup: BeautifulSoup) -> str:
        first_present = None
        for selector in self.CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element is None:
                continue
            text = element.get_text().strip()
            if len(text) > self.MIN_CONTENT_LENGTH:
                return text
            if first_present is None:
                first_present = text
        if first_present is not None:
            return first_present
        return _body_text(soup)

    def should_render(self, html: str) -> bool:
        soup = BeautifulSoup(html or "", "html.parser")
        if not any(soup.select_one(mount) for mount in self.APP_MOUNTS):
            return False
        for tag in soup.select("script, style, noscript"):
            tag.decompose()
        return not _body_text(soup)


class ParserManager:
    """Selects a parser strategy for a page."""

    def __init__(self, strategies: Optional[Sequence[ParserStrategy]] = None):
        if strategies is None:
            strategies = [OopyParser()]
        self._fallback = GenericParser()
        # The fallback always matches, so it must be evaluated last
        self.strategies: List[ParserStrategy] = [s for s in strategies if not isinstance(s, GenericParser)]
        self.strategies.append(self._fallback)

    def select_strategy(self, html: str, url: str) -> ParserStrategy:
        for strategy in self.strategies:
            if strategy.is_applicable(html, url):
                return strategy
        return self._fallback

    def available_strategies(self) -> List[str]:
        return [strategy.name for strategy in self.strategies]

    def get_strategy(self, name: str) -> Optional[ParserStrategy]:
        for strategy in self.strategies:
            if strategy.name == name:
                return strategy
        return None
