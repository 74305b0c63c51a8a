# main.py

"""Entry point for the price_sync job (one reconciliation run per call)."""

import argparse
import asyncio
import logging
import sys

from price_sync.config.logging_config import setup_logging
from price_sync.config.settings import Settings

logger = logging.getLogger("price_sync.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="price_sync",
        description=(
            "Reconcile catalog prices against the Prisync "
            "price-monitoring service."
        ),
        epilog=(
            "Credentials are read from PRISYNC_API_KEY, "
            "PRISYNC_API_TOKEN, SUPABASE_URL and "
            "SUPABASE_SERVICE_ROLE_KEY (or a .env file)."
        ),
    )
    parser.add_argument(
        "-b",
        "--backend",
        choices=Settings.CATALOG_BACKENDS,
        default=None,
        help="Local catalog backend (default: CATALOG_BACKEND or supabase).",
    )
    parser.add_argument(
        "-s",
        "--strategies",
        default=None,
        help=(
            "Comma-separated match strategies in priority order: "
            "name_exact, name_partial, url "
            "(default: MATCH_STRATEGIES or name_exact,name_partial)."
        ),
    )
    parser.add_argument(
        "-m",
        "--mode",
        choices=Settings.SYNC_MODES,
        default=None,
        help="Scheduling model (default: SYNC_MODE or sequential).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["table", "json"],
        default="table",
        dest="output_format",
        help="Summary output format (default: table).",
    )
    return parser


def main() -> None:
    """Run one price sync and exit with its status code."""
    log_file = setup_logging()
    logger.info("price_sync starting, log file: %s", log_file)

    args = _build_parser().parse_args()

    from price_sync.cli.runner import cli_sync

    exit_code = asyncio.run(
        cli_sync(
            backend=args.backend,
            strategies=args.strategies,
            mode=args.mode,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
