"""
amzwp CLI

Command-line interface for discovering, auditing and scanning a site.

Usage:
    amzwp discover https://example.com
    amzwp add https://example.com/best-blenders
    amzwp audit --concurrency 10
    amzwp scan https://example.com/best-blenders
    amzwp push 123 post.html
    amzwp test-connection
    amzwp diagnose example.com
    amzwp cache stats
"""

import argparse
import asyncio
import json
import sys
from collections import Counter
from pathlib import Path

from .analysis import ProductAnalyzer
from .audit import AuditProgress, ContentAuditor
from .cache import IntelligenceCache
from .config import Config, config as default_config
from .content import ContentResolver
from .diagnostics import diagnose_url_issue, get_logger
from .enrichment import EnrichmentOracle
from .error_handler import (
    format_error_for_logging,
    format_user_friendly_error,
    get_error_category,
    should_retry_error,
)
from .errors import CredentialsError, ValidationError, WordPressAPIError
from .http import HttpClient
from .pages import load_registry, save_registry
from .product_search import ProductOracle
from .relay import RelayFetcher
from .retry import RetryContext
from .sitemap import SitemapDiscovery
from .wordpress import WordPressClient

logger = get_logger(__name__)


def _pages_path(cfg: Config) -> Path:
    return Path(cfg.workspace) / "pages.json"


def _print_error(error: Exception, context: str):
    friendly = format_user_friendly_error(error, context)
    print(f"❌ {friendly['message']}", file=sys.stderr)
    print(f"💡 {friendly['suggestion']}", file=sys.stderr)
    if get_error_category(error) == "unreachable":
        print("🔎 Run 'amzwp diagnose <url>' to check DNS, TCP and TLS", file=sys.stderr)


async def _discover(cfg: Config, site: str, sequential: bool):
    async with HttpClient() as http:
        relay = RelayFetcher(http, default_timeout=cfg.timeout)
        discovery = SitemapDiscovery(
            http, relay, cfg.credentials, relay_parallel=cfg.relay_parallel and not sequential
        )
        return await discovery.discover(site)


async def _audit(cfg: Config, registry, concurrency: int):
    def progress(p: AuditProgress):
        print(f"\r   {p.current}/{p.total} ({p.percentage}%)", end="", flush=True)

    async with HttpClient() as http:
        relay = RelayFetcher(http, default_timeout=cfg.timeout)
        resolver = ContentResolver(relay, cfg.credentials, relay_parallel=cfg.relay_parallel)
        auditor = ContentAuditor(resolver, concurrency=concurrency)
        report = await auditor.audit(registry.posts, on_progress=progress)
    print()
    return report


async def _scan(cfg: Config, url: str, title: str):
    cache = IntelligenceCache.from_config(cfg)
    cache.cleanup()
    async with HttpClient() as http:
        relay = RelayFetcher(http, default_timeout=cfg.timeout)
        resolver = ContentResolver(relay, cfg.credentials, relay_parallel=cfg.relay_parallel)
        page = await resolver.fetch_page_content(url)
        analyzer = ProductAnalyzer(
            ProductOracle.from_config(relay, cache, cfg),
            cache,
            enrichment=EnrichmentOracle.from_config(http, cfg),
            max_products=cfg.max_products_per_scan,
        )
        return await analyzer.analyze(title or page.title, page.content)


async def _push(cfg: Config, post_id: int, html: str) -> str:
    creds = cfg.credentials
    if not creds.complete:
        raise CredentialsError("WordPress URL, user and application password are required to push")
    async with HttpClient() as http:
        wp = WordPressClient(http, creds, push_timeout=cfg.push_timeout)
        async with RetryContext(max_attempts=cfg.max_retries, initial_delay=cfg.retry_backoff) as ctx:
            while ctx.should_retry():
                try:
                    link = await wp.update_post(post_id, html)
                    ctx.success()
                    return link
                except WordPressAPIError as e:
                    if not should_retry_error(e):
                        raise
                    await ctx.failed(e)
    raise WordPressAPIError(f"Update of post {post_id} did not complete")


async def _test_connection(cfg: Config):
    async with HttpClient() as http:
        return await WordPressClient(http, cfg.credentials).test_connection()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amzwp",
        description="Find monetization opportunities in a WordPress site"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    discover_parser = subparsers.add_parser("discover", help="Discover pages from a site or sitemap")
    discover_parser.add_argument("site", help="Site root or sitemap URL")
    discover_parser.add_argument("--sequential", action="store_true",
                                 help="Try relays one by one instead of racing them")
    discover_parser.add_argument("--json", action="store_true", help="Print pages as JSON")

    add_parser = subparsers.add_parser("add", help="Add pages by URL")
    add_parser.add_argument("urls", nargs="+", help="Page URLs")

    audit_parser = subparsers.add_parser("audit", help="Classify pages by monetization priority")
    audit_parser.add_argument("site", nargs="?", help="Discover this site first")
    audit_parser.add_argument("-c", "--concurrency", type=int, default=None,
                              help="Pages resolved in parallel")

    scan_parser = subparsers.add_parser("scan", help="Detect products in one page")
    scan_parser.add_argument("url", help="Page URL")
    scan_parser.add_argument("-t", "--title", default="", help="Page title")

    push_parser = subparsers.add_parser("push", help="Replace the content of a post")
    push_parser.add_argument("post_id", type=int, help="WordPress post id")
    push_parser.add_argument("file", help="HTML file with the new content")

    subparsers.add_parser("test-connection", help="Check WordPress credentials")

    diagnose_parser = subparsers.add_parser("diagnose", help="Probe DNS/TCP/TLS/HTTP of a host")
    diagnose_parser.add_argument("url", help="URL or host")

    cache_parser = subparsers.add_parser("cache", help="Inspect or clear the lookup cache")
    cache_parser.add_argument("action", choices=["stats", "cleanup", "clear"])

    return parser


def run(args, cfg: Config) -> int:
    if args.command == "discover":
        posts = asyncio.run(_discover(cfg, args.site, args.sequential))
        registry = load_registry(_pages_path(cfg))
        registry.replace_all(posts)
        save_registry(registry, _pages_path(cfg))
        if args.json:
            print(json.dumps([p.to_dict() for p in posts], indent=2))
        else:
            print(f"✅ Discovered {len(posts)} pages")
            for post in posts:
                print(f"   {post.title} - {post.url}")
        return 0

    elif args.command == "add":
        registry = load_registry(_pages_path(cfg))
        failures = 0
        for url in args.urls:
            try:
                post = registry.add_url(url)
                print(f"✅ Added {post.url}")
            except ValidationError as e:
                failures += 1
                print(f"⚠️  {url}: {e}")
        save_registry(registry, _pages_path(cfg))
        return 1 if failures == len(args.urls) else 0

    elif args.command == "audit":
        registry = load_registry(_pages_path(cfg))
        if args.site:
            registry.replace_all(asyncio.run(_discover(cfg, args.site, False)))
        if not len(registry):
            print("No pages yet. Run 'amzwp discover <site>' or 'amzwp add <url>' first")
            return 1
        report = asyncio.run(_audit(cfg, registry, args.concurrency or cfg.concurrency))
        if report.cancelled:
            print("⚠️  Audit was superseded, pages were not saved")
            return 1
        registry.replace_all(report.posts)
        save_registry(registry, _pages_path(cfg))
        counts = Counter(p.priority.value for p in report.posts)
        print(f"📊 Audited {len(report.posts)} pages ({len(report.unresolved)} unresolved)")
        for level in ("critical", "high", "medium", "low"):
            print(f"   {level}: {counts.get(level, 0)}")
        return 0

    elif args.command == "scan":
        result = asyncio.run(_scan(cfg, args.url, args.title))
        if not result.detected_products:
            print("No products detected")
            return 0
        print(f"🔍 {len(result.detected_products)} products{' (cached)' if result.cached else ''}:")
        for i, p in enumerate(result.detected_products, 1):
            print(f"   {i}. {p.title} [{p.asin or 'no ASIN'}] {p.price}")
        if result.carousel:
            print(f"   Carousel: {result.carousel.title} ({len(result.carousel.product_ids)} items)")
        return 0

    elif args.command == "push":
        try:
            html = Path(args.file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError(f"Cannot read {args.file}: {e}", field="file") from e
        link = asyncio.run(_push(cfg, args.post_id, html))
        print(f"✅ Updated {link}")
        return 0

    elif args.command == "test-connection":
        result = asyncio.run(_test_connection(cfg))
        print(f"{'✅' if result.success else '❌'} {result.message}")
        return 0 if result.success else 1

    elif args.command == "diagnose":
        print(json.dumps(diagnose_url_issue(args.url), indent=2))
        return 0

    elif args.command == "cache":
        cache = IntelligenceCache.from_config(cfg)
        if args.action == "stats":
            print(json.dumps(cache.stats(), indent=2))
        elif args.action == "cleanup":
            print(f"🧹 Removed {cache.cleanup()} expired entries")
        else:
            cache.clear()
            print("🧹 Cache cleared")
        return 0

    return 0


def main(argv=None, cfg: Config = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return run(args, cfg or default_config)
    except Exception as e:
        logger.debug(format_error_for_logging(e, args.command))
        _print_error(e, args.command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
