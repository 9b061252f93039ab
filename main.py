"""Command-line entry point for the Instagram to Bluesky importer.

This script reads an unzipped Instagram data export and republishes its posts
on Bluesky with their original dates. Every setting can come from the
environment (or a ``.env`` file in the working directory) and be overridden
with a flag. Run with ``--simulate`` first to check the archive and get an
estimate of how long the real import will take.

Usage example:

    python main.py \
        --archive-folder ./instagram-export \
        --username me.bsky.social \
        --min-date 2019-01-01 \
        --simulate
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from instasky.config import ImportConfig, parse_date
from instasky.errors import ConfigError, InstaskyError
from instasky.importer import run_import

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _date_arg(value: str):
    try:
        return parse_date(value)
    except ConfigError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import posts from an Instagram data export into Bluesky."
    )
    parser.add_argument(
        "--archive-folder",
        default=None,
        help="Root folder of the unzipped Instagram export (default: $ARCHIVE_FOLDER)",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="Bluesky handle or email (default: $BLUESKY_USERNAME)",
    )
    parser.add_argument(
        "--password",
        default=None,
        help="Bluesky app password (default: $BLUESKY_PASSWORD)",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        default=None,
        help="Process the archive without publishing anything (default: $SIMULATE=1)",
    )
    parser.add_argument(
        "--min-date",
        type=_date_arg,
        default=None,
        help="Skip posts dated before this ISO date (default: $MIN_DATE)",
    )
    parser.add_argument(
        "--max-date",
        type=_date_arg,
        default=None,
        help="Stop at the first post dated after this ISO date (default: $MAX_DATE)",
    )
    parser.add_argument(
        "--test-video-mode",
        action="store_true",
        default=None,
        help="Import the sample videos under ./transfer/test_videos",
    )
    parser.add_argument(
        "--test-image-mode",
        action="store_true",
        default=None,
        help="Import the sample images under ./transfer/test_images",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace, environ=None) -> ImportConfig:
    """Merge command line flags over environment settings."""
    config = ImportConfig.from_env(environ)
    if args.archive_folder is not None:
        config.archive_folder = Path(args.archive_folder)
    if args.username is not None:
        config.username = args.username
    if args.password is not None:
        config.password = args.password
    if args.simulate:
        config.simulate = True
    if args.min_date is not None:
        config.min_date = args.min_date
    if args.max_date is not None:
        config.max_date = args.max_date
    if args.test_video_mode:
        config.test_video_mode = True
    if args.test_image_mode:
        config.test_image_mode = True
    return config


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    try:
        config = build_config(args, os.environ)
        summary = run_import(config)
    except InstaskyError as e:
        logging.error("Import aborted: %s", e)
        return 1
    if summary.simulate:
        print(f"Estimated time for real import: {summary.estimated_time}")
    print(
        f"Imported {summary.imported_posts} posts with {summary.imported_media} media"
        f" ({summary.skipped} skipped)"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
