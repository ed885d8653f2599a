"""Command-line entry point for the site crawler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from .config import (
    DEFAULT_COMMON_THRESHOLD,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_OUTPUT_ROOT,
    ConfigError,
    CrawlConfig,
)
from .crawler import crawl, write_output
from .models import CrawlOutput

logger = logging.getLogger("eh_crawl.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
RULE = "=" * 50


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="eh-crawl",
        description="Crawl a website and write a structural fingerprint of every page as JSON.",
    )
    parser.add_argument("url", help="Target URL to crawl")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT_ROOT,
        type=Path,
        help="Directory where {siteId}.json should be written",
    )
    parser.add_argument(
        "-d",
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help="Maximum crawl depth (default: 3)",
    )
    parser.add_argument(
        "-p",
        "--max-pages",
        type=int,
        default=DEFAULT_MAX_PAGES,
        help="Maximum pages to crawl (default: 50)",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=1000,
        help="Delay after each page load in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=30000,
        help="Page load timeout in milliseconds (default: 30000)",
    )
    parser.add_argument("-i", "--site-id", default=None, help="Site ID (derived from the hostname if omitted)")
    parser.add_argument("-n", "--site-name", default=None, help="Site name (root page title if omitted)")
    parser.add_argument(
        "--common-threshold",
        type=float,
        default=DEFAULT_COMMON_THRESHOLD,
        help="Share of pages a link must appear on to count as common (0-1, default: 0.8)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    return CrawlConfig(
        url=args.url,
        output_root=Path(args.output).resolve(),
        max_depth=args.max_depth,
        max_pages=args.max_pages,
        delay=args.delay / 1000,
        navigation_timeout=args.timeout / 1000,
        common_threshold=args.common_threshold,
        site_id=args.site_id,
        site_name=args.site_name,
    )


def print_summary(output: CrawlOutput, output_path: Path) -> None:
    """Print the crawl summary to stderr."""
    rare = ", ".join(output.rare_elements) or "none"
    deepest = ", ".join(output.deepest_pages[:3]) or "none"
    sys.stderr.write(RULE + "\n")
    sys.stderr.write("Results:\n")
    sys.stderr.write(f"  Pages crawled:  {output.metadata.total_pages}\n")
    sys.stderr.write(f"  Total elements: {output.metadata.total_elements}\n")
    sys.stderr.write(f"  Common links:   {len(output.common_links)} (excluded)\n")
    sys.stderr.write(f"  Rare elements:  {rare}\n")
    sys.stderr.write(f"  Deepest pages:  {deepest}\n")
    sys.stderr.write(f"  Duration:       {output.metadata.crawl_duration / 1000:.1f}s\n")
    sys.stderr.write(f"\nOutput: {output_path}\n")
    sys.stderr.write(RULE + "\n")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    try:
        config = build_config(args)
    except ConfigError as exc:
        logger.error("Error: %s", exc)
        return EXIT_CONFIG_ERROR

    try:
        output = asyncio.run(crawl(config))
        output_path = write_output(output, config.output_root)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Crawl failed")
        return EXIT_FAILURE

    print_summary(output, output_path)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
