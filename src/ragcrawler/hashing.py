"""
Content fingerprints for duplicate detection and stable document ids.
"""

import hashlib
from typing import Set


def quick_fingerprint(title: str, content_length: int) -> str:
    """
    Cheap duplicate key: stripped title plus content length.

    Coarse by construction: distinct pages sharing a title and a content
    length collide, and near-duplicates of different length do not.

    Args:
        title: Page title as returned by the parser strategy
        content_length: Length of the extracted content in characters

    Returns:
        Fingerprint string such as "FAQ_120"
    """
    return f"{(title or '').strip()}_{content_length}"


def generate_document_id(url: str) -> str:
    """
    Stable document id derived from a (normalized) URL.

    Args:
        url: Normalized page URL

    Returns:
        Id of the form "doc-<16 hex chars>"
    """
    digest = hashlib.sha256(url.encode('utf-8')).hexdigest()
    return f"doc-{digest[:16]}"


class ContentDedupIndex:
    """Fingerprints seen during one crawl session."""

    def __init__(self):
        self._seen: Set[str] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, fingerprint: str) -> bool:
        return fingerprint in self._seen

    def add(self, fingerprint: str) -> bool:
        """Record a fingerprint. Returns False if it had already been seen."""
        if fingerprint in self._seen:
            return False
        self._seen.add(fingerprint)
        return True

    def check_page(self, title: str, content: str) -> bool:
        """Record a page's fingerprint. Returns False for a duplicate."""
        return self.add(quick_fingerprint(title, len(content or "")))
