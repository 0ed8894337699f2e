#!/usr/bin/env python3
"""
Command-line listing search: load listings from a sheet CSV export or the
listing source chain, filter and sort them like the web board does.
"""
import argparse
import asyncio
import os
import sys
from typing import List, Optional

from .export import listings_to_frame, save_output_rows
from .models import Listing
from .search import SORT_OPTIONS, board_view, generate_suggestions
from .sheets import SheetSchemaError, parse_listings_csv
from .source import ListingSource
from .utils import init_logger

DEFAULT_CSV_URL = "http://localhost:8000/api/sheets"
DEFAULT_BACKUP_URL = "http://localhost:8000/data/listings-backup.json"


def parse_args(argv: Optional[List[str]] = None):
    ap = argparse.ArgumentParser(description="Search real-estate listings from the listings sheet")
    src = ap.add_mutually_exclusive_group()
    src.add_argument("--csv", type=str, default="", help="Path to a sheet CSV export")
    src.add_argument("--url", type=str, default=os.getenv("LISTINGS_SOURCE_URL", DEFAULT_CSV_URL),
                     help="CSV proxy URL (default from env LISTINGS_SOURCE_URL)")
    ap.add_argument("--backup-url", type=str, default=os.getenv("LISTINGS_BACKUP_URL", DEFAULT_BACKUP_URL),
                    help="Backup JSON URL used when the CSV proxy fails")
    ap.add_argument("--query", "-q", type=str, default="", help="Search text, e.g. '최저가 매매 41평'")
    ap.add_argument("--sort", choices=SORT_OPTIONS, default="recent", help="Sort order")
    ap.add_argument("--type", dest="type_", type=str, default=None, help="Listing type, e.g. 매매")
    ap.add_argument("--complex", dest="complex_", type=str, default=None, help="Complex name contains")
    ap.add_argument("--size", type=str, default=None, help="Size class, e.g. 35 or 47(48)")
    ap.add_argument("--min-price", type=float, default=None, help="Minimum price (억)")
    ap.add_argument("--max-price", type=float, default=None, help="Maximum price (억)")
    ap.add_argument("--min-size", type=float, default=None, help="Minimum size (평)")
    ap.add_argument("--max-size", type=float, default=None, help="Maximum size (평)")
    ap.add_argument("--suggest", action="store_true", help="Print autocomplete suggestions for --query")
    ap.add_argument("--limit", type=int, default=5, help="Number of suggestions")
    ap.add_argument("--out", type=str, default="", help="Write results to CSV/XLSX instead of printing")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "WARNING"),
                    help="Console log level (default from env LOG_CONSOLE or WARNING).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "listings.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or listings.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def load_listings(args, logger) -> List[Listing]:
    if args.csv:
        with open(args.csv, "r", encoding="utf-8-sig") as f:
            listings = parse_listings_csv(f.read())
        logger.info(f">>> Parsed {len(listings)} listings from {args.csv}")
        return listings

    source = ListingSource(args.url, args.backup_url)
    return asyncio.run(source.fetch_listings())


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = init_logger(
        console_level=args.log_console,
        file_level=args.log_file,
        log_file=None if args.no_file_log else args.log_file_path
    )

    try:
        listings = load_listings(args, logger)
    except (OSError, SheetSchemaError) as e:
        logger.error(f"Failed to load listings: {e}")
        return 1

    if args.suggest:
        for suggestion in generate_suggestions(listings, args.query, limit=args.limit):
            print(suggestion)
        return 0

    results = board_view(
        listings,
        query=args.query,
        sort_by=args.sort,
        type_=args.type_,
        complex_=args.complex_,
        size=args.size,
        min_price=args.min_price,
        max_price=args.max_price,
        min_size=args.min_size,
        max_size=args.max_size
    )
    logger.info(f">>> {len(results)} of {len(listings)} listings match {args.query!r}")

    if args.out:
        save_output_rows(results, args.out, logger=logger)
    elif results:
        df = listings_to_frame(results)
        print(df[["type", "complex", "unit", "size", "price", "features"]].to_string(index=False))
    else:
        print("No matching listings.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
