"""Command-line entry point for generating the author RSS feed."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import SOURCES, load_config
from .feed import run
from .models import FeedError

LOGGER = logging.getLogger("author_feed")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate an RSS feed of one author's 36Kr articles")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--output", type=Path, help="Override the feed output path")
    parser.add_argument("--source", choices=SOURCES, help="Listing source: html page or paginated api")
    parser.add_argument("--user-id", help="Author account to list")
    parser.add_argument("--max-items", type=int, help="Maximum number of articles in the feed")
    parser.add_argument("--delay", type=float, help="Seconds to wait between article fetches")
    parser.add_argument(
        "--no-content",
        action="store_true",
        help="Skip full-text extraction and only read page metadata",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    overrides = {
        "output_path": args.output,
        "source": args.source,
        "user_id": args.user_id,
        "max_items": args.max_items,
        "request_delay": args.delay,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if args.no_content:
        overrides["full_content"] = False
    try:
        config = load_config()
        if overrides:
            config = replace(config, **overrides)
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 1

    try:
        result = run(config)
    except FeedError as exc:
        LOGGER.error("Feed generation failed: %s", exc)
        return 1

    print(f"Wrote: {result.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
