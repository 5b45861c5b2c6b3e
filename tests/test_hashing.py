import pytest
from src.ragcrawler.hashing import ContentDedupIndex, generate_document_id, quick_fingerprint

class TestHashing:
    def test_quick_fingerprint(self):
        assert quick_fingerprint("FAQ", 120) == "FAQ_120"
        assert quick_fingerprint("  FAQ \n", 120) == "FAQ_120"
        assert quick_fingerprint("", 0) == "_0"

    def test_document_id(self):
        doc_id = generate_document_id("https://help.test/guide")
        assert doc_id.startswith("doc-")
        assert len(doc_id) == len("doc-") + 16
        assert doc_id == generate_document_id("https://help.test/guide")
        # Long shared prefixes must not collide
        assert generate_document_id("https://help.test/guide/a") != generate_document_id("https://help.test/guide/b")

class TestContentDedupIndex:
    def test_add(self):
        index = ContentDedupIndex()
        assert index.add("FAQ_120") is True
        assert index.add("FAQ_120") is False
        assert "FAQ_120" in index
        assert len(index) == 1

    def test_check_page(self):
        index = ContentDedupIndex()
        assert index.check_page("FAQ", "a" * 120) is True
        # Same title and length: treated as duplicate even with different text
        assert index.check_page("FAQ", "b" * 120) is False
        assert index.check_page("FAQ", "b" * 121) is True
        assert index.check_page("Other FAQ", "a" * 120) is True
        assert len(index) == 3
