"""Command-line entrypoint for newsharvest.

Flow:
1) load the static source configuration
2) scrape one category, all categories, or run a health check
3) print the result as JSON on stdout
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError
from .models import CATEGORIES
from .orchestrator import Scraper
from .processors import extract_trending_topics
from .utils.config_loader import DEFAULT_CONFIG_PATH
from .utils.logging import configure_logging, get_logger
from .utils.scraper_config import ScraperConfig


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scrape configured news, government and social sources into structured records"
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_PATH),
        help="Path to sources configuration file (YAML)",
    )
    parser.add_argument(
        "--category",
        default="all",
        choices=["all", *CATEGORIES],
        help="Scrape a single category, or all of them concurrently",
    )
    parser.add_argument(
        "--query",
        default=None,
        help="Only keep records whose title or content mentions this text",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        help="Check which source sites respond and exit",
    )
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Overall time budget in seconds; partial results are returned on expiry",
    )
    parser.add_argument(
        "--topics",
        action="store_true",
        help="Include trending topic hashtags derived from the records",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity (defaults to LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    # .env in the working directory; real environment variables win.
    load_dotenv(find_dotenv(usecwd=True), override=False)
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    logger = get_logger("nh.cli")

    logger.info("Loading sources configuration from %s", args.config)
    try:
        scraper = Scraper.from_config_file(args.config, config=ScraperConfig())
    except ConfigError as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1
    logger.info("Loaded %d source(s)", len(scraper.sources))

    if args.health:
        working, failed = scraper.health_check()
        payload: dict = {"working": working, "failed": failed}
    elif args.category == "all":
        result = scraper.scrape_all(args.query, timeout=args.deadline)
        payload = result.to_dict()
        records = result.records
    else:
        records, errors = scraper.scrape(args.category, args.query, timeout=args.deadline)
        payload = {
            "records": [r.to_dict() for r in records],
            "errors": {name: f"{type(err).__name__}: {err}" for name, err in errors.items()},
        }

    if args.topics and not args.health:
        payload["topics"] = extract_trending_topics(records)

    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
