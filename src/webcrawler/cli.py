"""
Command-line interface for the crawler.
"""
from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from webcrawler.config import (
    DEFAULT_DRAIN_TIMEOUT_S,
    DEFAULT_FORCE_TIMEOUT_S,
    DEFAULT_IDLE_BACKOFF_S,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKERS,
    ConfigError,
    CrawlConfig,
)
from webcrawler.scheduler import CrawlScheduler, CrawlSummary

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def print_summary(summary: CrawlSummary) -> None:
    """Print crawl summary to stderr."""
    stats = summary.stats
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("CRAWL SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Root URL:               {summary.root_url}\n")
    sys.stderr.write(f"Total pages crawled:    {summary.pages_crawled}\n")
    sys.stderr.write(f"Total URLs discovered:  {summary.urls_discovered}\n")
    sys.stderr.write(f"Pages without title:    {stats.pages_without_title}\n")
    sys.stderr.write(f"Links found:            {stats.links_found}\n")
    sys.stderr.write(f"Duration:               {summary.duration_s:.2f}s\n\n")

    if stats.error_counts:
        sys.stderr.write("Errors by type:\n")
        for error_type, count in sorted(stats.error_counts.items()):
            label = f"HTTP {error_type}" if error_type.isdigit() else error_type.replace("_", " ")
            sys.stderr.write(f"  {label}: {count}\n")
    else:
        sys.stderr.write("No errors encountered.\n")

    sys.stderr.write("\n")


def install_interrupt_handler(scheduler: CrawlScheduler):
    """
    Route Ctrl-C to `scheduler.stop()` so the pool drains and a summary is still
    reported. The handler puts the previous one back on first use, so a second
    Ctrl-C interrupts the drain as usual. Returns the previous handler.
    """
    previous_handler = signal.getsignal(signal.SIGINT)
    if previous_handler is None:
        # Installed outside Python
        previous_handler = signal.default_int_handler

    def on_interrupt(signum, frame):
        signal.signal(signal.SIGINT, previous_handler)
        scheduler.stop()

    signal.signal(signal.SIGINT, on_interrupt)
    return previous_handler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Crawl pages starting from a URL and save their HTML locally."
    )
    parser.add_argument("root_url", help="Root URL (e.g. https://example.com/)")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help=f"Maximum link depth from the root (default: {DEFAULT_MAX_DEPTH})")
    parser.add_argument("--max-pages", type=int, default=DEFAULT_MAX_PAGES,
                        help=f"Maximum pages to save (default: {DEFAULT_MAX_PAGES})")
    parser.add_argument("--workers", type=int, default=DEFAULT_WORKERS,
                        help=f"Number of worker threads (default: {DEFAULT_WORKERS})")
    parser.add_argument("--allow-external", action="store_true",
                        help="Follow links to other hosts (default: stay on the root's host)")
    parser.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR,
                        help=f"Directory for saved pages (default: {DEFAULT_OUTPUT_DIR})")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_S,
                        help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT_S:g})")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument("--idle-backoff", type=float, default=DEFAULT_IDLE_BACKOFF_S,
                        help=f"Longest dispatcher wait while work is in flight, seconds (default: {DEFAULT_IDLE_BACKOFF_S:g})")
    parser.add_argument("--drain-timeout", type=float, default=DEFAULT_DRAIN_TIMEOUT_S,
                        help=f"Grace period for running pages at shutdown (default: {DEFAULT_DRAIN_TIMEOUT_S:g})")
    parser.add_argument("--force-timeout", type=float, default=DEFAULT_FORCE_TIMEOUT_S,
                        help=f"Extra wait after forced cancellation (default: {DEFAULT_FORCE_TIMEOUT_S:g})")
    parser.add_argument("--out", help="Write the JSON run summary to this file, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--verbose", action="store_true", help="Debug logging and summary banner")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # urllib3 is chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    try:
        config = CrawlConfig(
            root_url=args.root_url,
            max_depth=args.max_depth,
            max_pages=args.max_pages,
            workers=args.workers,
            stay_in_domain=not args.allow_external,
            output_dir=args.output_dir,
            timeout_s=args.timeout,
            user_agent=args.user_agent,
            idle_backoff_s=args.idle_backoff,
            drain_timeout_s=args.drain_timeout,
            force_timeout_s=args.force_timeout,
        )
    except ConfigError as e:
        sys.stderr.write(f"error: {e}\n")
        return 2

    scheduler = CrawlScheduler(config)
    previous_handler = install_interrupt_handler(scheduler)
    try:
        summary = scheduler.run()
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if args.verbose:
        print_summary(summary)

    if args.out:
        json_text = json.dumps(summary.to_dict(), ensure_ascii=False, indent=2 if args.pretty else None)
        if args.out == "-":
            print(json_text)
        else:
            output_path = Path(args.out)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json_text, encoding="utf-8")
            if args.verbose:
                sys.stderr.write(f"Summary written to: {output_path}\n")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
