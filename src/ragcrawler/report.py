"""
Plain-text summaries of a crawl session for the command line.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .models import CrawledDocument, CrawlSession

RULE = "=" * 80
PREVIEW_CHARS = 200


@dataclass
class HierarchyNode:
    document: CrawledDocument
    children: List["HierarchyNode"] = field(default_factory=list)


def _header(title: str) -> List[str]:
    return ["", RULE, title, RULE]


def format_crawl_results(session: CrawlSession) -> str:
    options = session.options
    stats = session.statistics
    domains = ", ".join(sorted(options.domain_restriction)) or "none"
    lines = _header("Crawl session results")
    lines += [
        "",
        "Session:",
        f"  ID: {session.id}",
        f"  Start URL: {session.start_url}",
        f"  Started: {session.start_time}",
        f"  Finished: {session.end_time or '-'}",
        f"  Status: {session.status.value}",
        f"  Duration: {session.duration:.2f}s",
        "",
        "Options:",
        f"  Max depth: {options.max_depth}",
        f"  Max pages: {options.max_pages}",
        f"  Concurrency: {options.concurrency}",
        f"  Crawl delay: {options.crawl_delay_ms}ms",
        f"  Domain restriction: [{domains}]",
        f"  Include parent pages: {options.include_parent_pages}",
        "",
        "Statistics:",
        f"  Total pages: {stats.total_pages}",
        f"  Processed: {stats.processed_pages}",
        f"  Skipped: {stats.skipped_pages}",
        f"  Errors: {stats.error_pages}",
        f"  Duplicates: {stats.duplicate_pages}",
        f"  Average processing time: {round(stats.average_processing_time)}ms",
    ]
    return "\n".join(lines)


def _preview(content: str) -> str:
    if len(content) > PREVIEW_CHARS:
        return content[:PREVIEW_CHARS] + "..."
    return content


def format_documents(documents: Iterable[CrawledDocument]) -> str:
    documents = list(documents)
    lines = _header(f"Crawled documents ({len(documents)})")
    for index, doc in enumerate(documents, start=1):
        lines += [
            "",
            f"[{index}] {doc.title}",
            f"  URL: {doc.url}",
            f"  Depth: {doc.depth}",
            f"  Length: {doc.word_count:,} chars",
            f"  Links: {len(doc.links)}",
            f"  Breadcrumb: [{' > '.join(doc.breadcrumb)}]",
            f"  Processing time: {round(doc.crawl_metadata.processing_time_ms)}ms",
        ]
        if doc.parent_url:
            lines.append(f"  Parent: {doc.parent_url}")
        lines.append(f'  Preview: "{_preview(doc.content)}"')
    return "\n".join(lines)


def build_hierarchy(documents: Iterable[CrawledDocument]) -> List[HierarchyNode]:
    """Parent/child tree of crawled documents, rooted at depth-0 documents.

    Documents whose parent was not stored (skipped, duplicate or failed) are
    left out of the tree.
    """
    nodes: Dict[str, HierarchyNode] = {}
    roots: List[HierarchyNode] = []
    for doc in sorted(documents, key=lambda d: d.depth):
        if doc.depth == 0:
            node = HierarchyNode(doc)
            roots.append(node)
        else:
            parent = nodes.get(doc.parent_url) if doc.parent_url else None
            if parent is None:
                continue
            node = HierarchyNode(doc)
            parent.children.append(node)
        nodes[doc.url] = node
    return roots


def _format_tree(nodes: List[HierarchyNode], level: int, lines: List[str]):
    indent = "  " * level
    for node in nodes:
        lines.append(f"{indent}- {node.document.title} ({node.document.word_count} chars)")
        _format_tree(node.children, level + 1, lines)


def format_link_summary(documents: Iterable[CrawledDocument]) -> str:
    documents = list(documents)
    internal = sum(1 for doc in documents for link in doc.links if link.is_internal)
    external = sum(1 for doc in documents for link in doc.links if not link.is_internal)
    lines = _header("Link summary")
    lines += [
        "",
        f"  Internal links: {internal}",
        f"  External links: {external}",
        f"  Total links: {internal + external}",
        "",
        "Site hierarchy:",
    ]
    _format_tree(build_hierarchy(documents), 1, lines)
    return "\n".join(lines)
