"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional, Sequence

from linkweaver.crawler import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_POLITENESS_DELAY_S,
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    CrawlConfig,
    Crawler,
)
from linkweaver.errors import CrawlExecutionError, OutputFileError
from linkweaver.export import DEFAULT_OUTPUT_PATH, ExportConfig
from linkweaver.models import CrawlStats

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def print_summary(
    stats: List[CrawlStats], failures: Optional[Dict[str, BaseException]] = None
) -> None:
    """Print crawl summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    for host in stats:
        sys.stderr.write(f"{host.base_uri}\n")
        sys.stderr.write(f"  Pages crawled:    {host.pages_crawled}\n")
        sys.stderr.write(f"  Failed pages:     {host.pages_failed}\n")
        sys.stderr.write(f"  Connections:      {host.connections}\n")
        sys.stderr.write(f"  Time taken:       {host.elapsed_ms} ms\n\n")

    if failures:
        sys.stderr.write("Failed hosts:\n")
        for uri, exc in sorted(failures.items()):
            sys.stderr.write(f"  {uri}: {exc}\n")
    else:
        sys.stderr.write("No failed hosts.\n")

    sys.stderr.write("\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl one or more hosts breadth-first and export pages, link graph and errors."
    )
    parser.add_argument("seeds", nargs="+", help="Seed URLs, one per host (e.g. https://example.com)")
    parser.add_argument(
        "--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
        help=f"Maximum link depth from each seed (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--delay", type=float, default=DEFAULT_POLITENESS_DELAY_S,
        help=f"Politeness delay before every request, in seconds (default: {DEFAULT_POLITENESS_DELAY_S:g})",
    )
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT_S,
        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})",
    )
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--format", choices=("markdown", "json"), default="markdown",
        help="Page export format (default: markdown)",
    )
    parser.add_argument("--metadata", action="store_true", help="Include page metadata in JSON exports")
    parser.add_argument(
        "--out", default=str(DEFAULT_OUTPUT_PATH),
        help=f"Output directory (default: {DEFAULT_OUTPUT_PATH})",
    )
    parser.add_argument("--sequential", action="store_true", help="Crawl hosts one after another")
    parser.add_argument("--verbose", action="store_true", help="Show every request and per-task timings")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )

    try:
        if args.format == "json":
            export_config = ExportConfig.json(args.out, metadata=args.metadata)
        else:
            export_config = ExportConfig.markdown(args.out)
        config = CrawlConfig(
            max_depth=args.max_depth,
            politeness_delay=args.delay,
            timeout=args.timeout,
            user_agent=args.user_agent,
            export_config=export_config,
        )
        crawler = Crawler(args.seeds, config)
    except (ValueError, OutputFileError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    try:
        stats = crawler.run() if args.sequential else crawler.run_parallel()
    except CrawlExecutionError as exc:
        print_summary(exc.completed, exc.failures)
        return 1

    print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
