import argparse, asyncio, json, sys
from src.ragcrawler.config import CrawlOptions, HttpConfig, USER_AGENTS, get_user_agent, parse_domain_list
from src.ragcrawler.crawl import crawl_site
from src.ragcrawler.errors import CrawlAbortedError
from src.ragcrawler.log import setup_logging
from src.ragcrawler.report import format_crawl_results, format_documents, format_link_summary


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Multi-page site crawler producing documents for a RAG ingest pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://help.example.com/guide
  %(prog)s https://help.example.com/guide --max-depth 2 --max-pages 100 --concurrency 5
  %(prog)s https://help.example.com/guide --allow-domains example.com --include-parents
  %(prog)s https://app.example.com --js --output documents.json
        """
    )

    p.add_argument("start", help="Start URL of the crawl")

    # Crawling behavior
    p.add_argument("--max-depth", type=int, default=None,
                   help="Maximum link depth from the start URL (default: 3)")
    p.add_argument("--max-pages", type=int, default=None,
                   help="Maximum number of documents to collect (default: 50)")
    p.add_argument("--concurrency", type=int, default=None,
                   help="Pages processed at the same time (default: 3)")
    p.add_argument("--delay", type=int, default=None,
                   help="Delay between page dispatches in milliseconds (default: 1000)")
    p.add_argument("--allow-domains", type=str, default="",
                   help="Comma-separated domains to allow (e.g., 'example.com,docs.example.com'); subdomains match too")
    p.add_argument("--include-parents", action="store_true",
                   help="Also collect pages above the start page in the site's breadcrumb hierarchy")
    p.add_argument("--js", action="store_true",
                   help="Render client-side pages with Playwright when a parser asks for it")

    # User agent options
    p.add_argument("--user-agent", choices=list(USER_AGENTS) + ["random"], default="default",
                   help="User agent type to use (default: default)")
    p.add_argument("--custom-ua", type=str,
                   help="Custom user agent string (overrides --user-agent)")

    # HTTP configuration
    p.add_argument("--timeout", type=float, default=None,
                   help="Request timeout in seconds (default: 30)")
    p.add_argument("--max-retries", type=int, default=None,
                   help="Attempts per page before giving up (default: 3)")
    p.add_argument("--retry-delay", type=float, default=None,
                   help="Initial delay between retries in seconds (default: 1.0)")
    p.add_argument("--retry-backoff", type=float, default=None,
                   help="Backoff factor for retry delays (default: 2.0)")
    p.add_argument("--http-backend", choices=["httpx", "aiohttp"], default=None,
                   help="HTTP client library (default: httpx)")
    p.add_argument("--no-http2", action="store_true",
                   help="Disable HTTP/2 (httpx backend)")

    # Output
    p.add_argument("--output", "-o", type=str, default=None,
                   help="Write the crawled documents as JSON to this file")
    p.add_argument("--verbose", "-v", action="store_true",
                   help="Enable debug logging on the console")
    p.add_argument("--log-file", type=str, default=None,
                   help="Also write a detailed debug log to this file")
    return p


def build_configs(args):
    """CrawlOptions and HttpConfig from parsed arguments; unset flags keep the defaults."""
    defaults = CrawlOptions()
    options = CrawlOptions(
        max_depth=args.max_depth if args.max_depth is not None else defaults.max_depth,
        max_pages=args.max_pages if args.max_pages is not None else defaults.max_pages,
        concurrency=args.concurrency if args.concurrency is not None else defaults.concurrency,
        crawl_delay_ms=args.delay if args.delay is not None else defaults.crawl_delay_ms,
        domain_restriction=parse_domain_list(args.allow_domains) or defaults.domain_restriction,
        include_parent_pages=args.include_parents or defaults.include_parent_pages,
    )

    http_config = HttpConfig()
    http_config.user_agent = args.custom_ua if args.custom_ua else get_user_agent(args.user_agent)
    if args.timeout is not None:
        http_config.timeout = args.timeout
    if args.max_retries is not None:
        http_config.retry_count = args.max_retries
    if args.retry_delay is not None:
        http_config.retry_delay = args.retry_delay
    if args.retry_backoff is not None:
        http_config.retry_backoff_factor = args.retry_backoff
    if args.http_backend:
        http_config.http_backend = args.http_backend
    if args.no_http2:
        http_config.enable_http2 = False
    if args.js:
        http_config.enable_js_rendering = True
    # Re-run validation after overrides
    http_config.__post_init__()
    return options, http_config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else "INFO", args.log_file)

    try:
        options, http_config = build_configs(args)
    except ValueError as e:
        print(f"Error: {e}")
        return 2

    try:
        session = asyncio.run(crawl_site(args.start, options, http_config))
    except CrawlAbortedError as e:
        print(f"Crawl aborted: {e}")
        if e.session is not None:
            print(format_crawl_results(e.session))
        return 1

    documents = session.document_list()
    print(format_crawl_results(session))
    print(format_documents(documents))
    print(format_link_summary(documents))

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump([doc.to_dict() for doc in documents], f, ensure_ascii=False, indent=2)
        print(f"\nWrote {len(documents)} documents to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
