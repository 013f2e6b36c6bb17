# main.py

"""Entry point for the pricewatch price-tracking engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pricewatch.config.logging_config import setup_logging
from pricewatch.config.settings import Settings

logger = logging.getLogger("pricewatch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="pricewatch",
        description="Track product prices across online retailers.",
    )
    parser.add_argument(
        "--db",
        default=None,
        type=Path,
        dest="db_path",
        help=f"SQLite database path (default: {Settings.DB_PATH}).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Also print INFO messages to stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    check_all = commands.add_parser(
        "check-all", help="Check every item that is due.",
    )
    check_all.add_argument(
        "-b",
        "--batch-size",
        type=int,
        default=None,
        help="Items per batch (default: the stored checking.batch_size).",
    )
    check_all.add_argument(
        "-d",
        "--delay",
        type=float,
        default=Settings.DELAY_BETWEEN_CHECKS,
        help="Base seconds between checks (default: %(default)s).",
    )
    check_all.add_argument(
        "-a",
        "--max-age",
        type=float,
        default=Settings.MAX_AGE,
        help="Only check items older than this many seconds.",
    )

    check = commands.add_parser("check", help="Force-check one item.")
    check.add_argument("item_id", help="Tracked item id.")

    track = commands.add_parser("track", help="Start tracking a URL.")
    track.add_argument("url", help="Product page URL.")
    track.add_argument(
        "--allow",
        action="store_true",
        default=False,
        help="Grant fetch permission for the URL's domain.",
    )

    commands.add_parser("list", help="List tracked items.")
    return parser


def main() -> None:
    """Dispatch the selected subcommand and exit with its code."""
    args = _build_parser().parse_args()
    log_file = setup_logging(
        console_level=logging.INFO if args.verbose else logging.WARNING,
    )
    logger.info("pricewatch starting, log file: %s", log_file)

    from pricewatch.cli import runner

    if args.command == "check-all":
        coro = runner.run_check_all(
            batch_size=args.batch_size,
            delay=args.delay,
            max_age=args.max_age,
            db_path=args.db_path,
        )
    elif args.command == "check":
        coro = runner.run_check(args.item_id, db_path=args.db_path)
    elif args.command == "track":
        coro = runner.run_track(
            args.url, allow=args.allow, db_path=args.db_path,
        )
    else:
        coro = runner.run_list(db_path=args.db_path)

    try:
        exit_code = asyncio.run(coro)
    except Exception:
        logger.critical("Fatal error in %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricewatch shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
