"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlparse

from linkcrawler.config import (
    ADMISSION_BLOCK,
    ADMISSION_POLICIES,
    DEFAULT_TIMEOUT_S,
    CrawlConfig,
    Settings,
)
from linkcrawler.core import Crawler, CrawlResult, CrawlStats
from linkcrawler.errors import ConfigError, StorageError
from linkcrawler.logs import configure_logging
from linkcrawler.store import LinkStore

OUTPUT_CHOICES = ("console", "json", "sql")


def print_summary(stats: CrawlStats, duration: float) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Pages fetched:          {stats.pages_fetched}\n")
    sys.stderr.write(f"Duplicates skipped:     {stats.duplicates_skipped}\n")
    sys.stderr.write(f"Not followed (depth):   {stats.depth_exhausted}\n")
    sys.stderr.write(f"Dropped (saturated):    {stats.dropped}\n")
    sys.stderr.write(f"Time taken:             {duration:.2f}s\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = f"HTTP {error_type}" if error_type.isdigit() else error_type.replace("_", " ").capitalize()
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def default_json_path(seed: str) -> Path:
    """crawls/links_<host>_<YYYYmmdd_HHMMSS>.json"""
    host = (urlparse(seed).hostname or "unknown").replace(".", "_")
    return Path("crawls") / f"links_{host}_{datetime.now():%Y%m%d_%H%M%S}.json"


def print_links(result: CrawlResult) -> None:
    if not result.links:
        print("No links found on the page.")
        return
    print(f"Found {len(result.links)} unique links on {result.seed}:")
    for i, link in enumerate(result.links, start=1):
        print(f"{i}. {link}")


def write_json(result: CrawlResult, out: Optional[str], pretty: bool, verbose: bool) -> None:
    json_text = json.dumps(result.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
    if out == "-":
        print(json_text)
        return
    output_path = Path(out) if out else default_json_path(result.seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    if verbose:
        sys.stderr.write(f"Results written to: {output_path}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkcrawler",
        description="Discover absolute links reachable from a start URL up to a given depth.",
    )
    parser.add_argument("start_url", help="Start URL (e.g. https://example.com)")
    parser.add_argument("--depth", type=int, default=2, help="Crawl depth, 0 fetches nothing (default: 2)")
    parser.add_argument("--concurrency", type=int, default=10, help="Max simultaneous fetches (default: 10)")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument("--user-agent", help="User-Agent header (default: $LINKCRAWLER_USER_AGENT or LinkCrawler/1.0)")
    parser.add_argument(
        "--admission", choices=sorted(ADMISSION_POLICIES), default=ADMISSION_BLOCK,
        help="When all fetch slots are busy: wait for one (block) or skip the link (drop)",
    )
    parser.add_argument("--output", choices=OUTPUT_CHOICES, default="console", help="Result output (default: console)")
    parser.add_argument("--out", help="JSON output file path, or '-' for stdout (default: auto-generated in crawls/)")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--database-url", help="SQLAlchemy database URL for --output sql (default: $DATABASE_URL)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging and summary")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        parser.error(str(e))

    database_url = args.database_url or settings.database_url
    if args.output == "sql" and not database_url:
        parser.error("--output sql needs --database-url or DATABASE_URL")

    config = CrawlConfig(
        seed=args.start_url,
        max_depth=args.depth,
        concurrency=args.concurrency,
        timeout_s=args.timeout,
        user_agent=args.user_agent or settings.user_agent,
        admission=args.admission,
    )
    try:
        config.validate()
    except ConfigError as e:
        parser.error(str(e))

    # Open the store before crawling so a bad URL fails fast
    store = None
    if args.output == "sql":
        try:
            store = LinkStore(database_url)
        except StorageError as e:
            sys.stderr.write(f"Error: {e}\n")
            return 1

    crawler = Crawler(config)
    if args.verbose:
        sys.stderr.write(
            f"Starting to crawl {config.seed} (depth={config.max_depth}, "
            f"concurrency={config.concurrency}, output={args.output})\n"
        )
    result = crawler.run()

    if args.verbose:
        print_summary(result.stats, result.duration_seconds)

    if args.output == "console":
        print_links(result)
    elif args.output == "json":
        write_json(result, args.out, args.pretty, args.verbose)
    else:
        try:
            added = store.store_links(result.links, result.parent_of)
        except StorageError as e:
            sys.stderr.write(f"Error: {e}\n")
            return 1
        finally:
            store.close()
        print(f"Stored {added} new links ({len(result.links)} discovered)")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
