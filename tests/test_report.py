import pytest

from src.ragcrawler.config import CrawlOptions
from src.ragcrawler.models import (
    CrawledDocument, CrawlMetadata, CrawlSession, CrawlStatus, LinkType, PageLink,
)
from src.ragcrawler.report import build_hierarchy, format_crawl_results, format_documents, format_link_summary


def doc(url, title, depth, parent=None, content="text", links=()):
    return CrawledDocument(
        id=f"doc-{title}",
        url=url,
        title=title,
        content=content,
        breadcrumb=("Home", title),
        depth=depth,
        parent_url=parent,
        discovered_at="2026-01-01T00:00:00+00:00",
        links=list(links),
        crawl_metadata=CrawlMetadata("crawl-1", "session-1", "initial" if depth == 0 else "link", 12.4),
    )


ROOT = doc("https://h.test/", "Root", 0, links=[
    PageLink("https://h.test/a", "A", LinkType.INTERNAL),
    PageLink("https://x.test/", "X", LinkType.EXTERNAL),
])
A = doc("https://h.test/a", "A", 1, parent="https://h.test/")
A1 = doc("https://h.test/a/1", "A1", 2, parent="https://h.test/a")
ORPHAN = doc("https://h.test/o", "Orphan", 1, parent="https://h.test/gone")


class TestHierarchy:
    def test_tree(self):
        # Input order does not matter
        roots = build_hierarchy([A1, ORPHAN, A, ROOT])
        assert [node.document.title for node in roots] == ["Root"]
        assert [node.document.title for node in roots[0].children] == ["A"]
        assert [node.document.title for node in roots[0].children[0].children] == ["A1"]

    def test_empty(self):
        assert build_hierarchy([]) == []


class TestFormatting:
    def test_crawl_results(self):
        session = CrawlSession(start_url="https://h.test/", options=CrawlOptions(domain_restriction=["h.test"]))
        session.statistics.record_processed(10)
        session.statistics.record_processed(20)
        session.statistics.record_skipped()
        session.finish(CrawlStatus.COMPLETED)

        text = format_crawl_results(session)
        assert session.id in text
        assert "Status: completed" in text
        assert "Domain restriction: [h.test]" in text
        assert "Total pages: 3" in text
        assert "Average processing time: 15ms" in text

    def test_documents_preview(self):
        long_doc = doc("https://h.test/long", "Long", 1, parent="https://h.test/", content="x" * 250)
        text = format_documents([ROOT, long_doc])
        assert "Crawled documents (2)" in text
        assert f'"{"x" * 200}..."' in text
        assert "Parent: https://h.test/" in text
        assert "Breadcrumb: [Home > Root]" in text

    def test_link_summary(self):
        text = format_link_summary([ROOT, A, A1])
        assert "Internal links: 1" in text
        assert "External links: 1" in text
        assert "Total links: 2" in text
        assert "  - Root (4 chars)" in text
        assert "    - A (4 chars)" in text
