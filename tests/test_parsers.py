import pytest
from src.ragcrawler.parsers import GenericParser, OopyParser, ParserManager, ParserStrategy

OOPY_PAGE = """
<html>
<head><title>Billing FAQ</title><script>window.__OOPY__ = {"page": 1}</script></head>
<body>
  <nav>Menu</nav>
  <div>Help Center / Billing / FAQ</div>
  <div>Search</div>
  <h1>Billing FAQ</h1>
  <div>How do I   change my
     plan?</div>
  <footer>Powered by Oopy</footer>
</body>
</html>
"""

class TestOopyParser:
    def test_applicability(self):
        parser = OopyParser()
        assert parser.is_applicable("<html></html>", "https://acme.oopy.io/page") is True
        assert parser.is_applicable(OOPY_PAGE, "https://help.acme.test/") is True
        assert parser.is_applicable("<html><body>plain</body></html>", "https://acme.test/") is False

    def test_parse(self):
        page = OopyParser().parse_static(OOPY_PAGE, "https://help.acme.test/faq")
        assert page.title == "Billing FAQ"
        assert page.breadcrumb == ("Help Center", "Billing", "FAQ")
        assert page.content == "How do I change my plan?"

    def test_no_separator(self):
        page = OopyParser().parse_static("<html><body><h1>Intro</h1><p>Welcome</p></body></html>", "https://acme.oopy.io/")
        assert page.title == "Intro"
        assert page.content == ""
        assert page.breadcrumb == ()

    def test_untitled(self):
        page = OopyParser().parse_static("<div>Home</div><div>Search</div><p>Text</p>", "https://acme.oopy.io/")
        assert page.title == "Untitled"
        assert page.breadcrumb == ("Home",)
        assert page.content == "Text"

class TestGenericParser:
    def test_prefers_long_main_content(self):
        body = "Lorem ipsum dolor sit amet. " * 5
        html = f"""
        <html><head><title>Article</title></head><body>
          <header>Site header</header>
          <nav>Navigation</nav>
          <main>{body}</main>
          <article>Short article</article>
          <footer>Footer</footer>
        </body></html>
        """
        page = GenericParser().parse_static(html, "https://blog.test/post")
        assert page.title == "Article"
        assert page.content == body.strip()
        assert page.breadcrumb == ()

    def test_short_candidates_fall_back_to_first_present(self):
        html = "<html><body><article>Short article</article><div class='content'>Also short</div></body></html>"
        page = GenericParser().parse_static(html, "https://blog.test/post")
        assert page.content == "Short article"
        assert page.title == "Untitled"

    def test_body_fallback(self):
        html = "<html><body><script>var x = 1;</script><p>Just   a paragraph</p></body></html>"
        page = GenericParser().parse_static(html, "https://blog.test/")
        assert page.content == "Just a paragraph"

    def test_should_render(self):
        parser = GenericParser()
        shell = '<html><body><div id="__next"></div><script src="/app.js"></script></body></html>'
        assert parser.should_render(shell) is True
        assert parser.should_render('<html><body><div id="root">Server rendered</div></body></html>') is False
        assert parser.should_render("<html><body></body></html>") is False

class TestParserManager:
    def test_generic_is_last_fallback(self):
        manager = ParserManager([GenericParser(), OopyParser()])
        assert manager.available_strategies() == ["oopy", "generic"]

    def test_select_strategy(self):
        manager = ParserManager()
        assert manager.select_strategy(OOPY_PAGE, "https://help.acme.test/").name == "oopy"
        assert manager.select_strategy("<html></html>", "https://blog.test/").name == "generic"

    def test_custom_strategy_order(self):
        class DocsParser(ParserStrategy):
            name = "docs"

            def is_applicable(self, html, url):
                return "/docs/" in url

            def parse_static(self, html, url):
                return GenericParser().parse_static(html, url)

        manager = ParserManager([DocsParser(), OopyParser()])
        assert manager.select_strategy(OOPY_PAGE, "https://acme.oopy.io/docs/a").name == "docs"
        assert manager.get_strategy("oopy") is not None
        assert manager.get_strategy("missing") is None

    def test_parse_dynamic_defaults_to_static(self):
        parser = OopyParser()
        assert parser.parse_dynamic(OOPY_PAGE, "https://x.test/") == parser.parse_static(OOPY_PAGE, "https://x.test/")
