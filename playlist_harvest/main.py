"""Command line entry point for a harvest run."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from playlist_harvest.config import HarvestSettings, load_settings
from playlist_harvest.context import run_harvest
from playlist_harvest.ingestion.base import AuthenticationError
from playlist_harvest.observability.logging import setup_logging
from playlist_harvest.observability.metrics import start_metrics_server
from playlist_harvest.storage.interfaces import StorageError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="playlist_harvest",
        description="Harvest a curator's playlists, tracks and audio features into PostgreSQL",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create the relations before harvesting",
    )
    parser.add_argument("--curator", help="Account whose playlists are harvested")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Log level (overrides LOG_LEVEL)",
    )
    parser.add_argument("--ledger", help="JSON Lines file for the failure ledger")
    return parser


def apply_overrides(settings: HarvestSettings, args: argparse.Namespace) -> HarvestSettings:
    """Return settings with the command line options applied."""
    updates = {}
    if args.curator:
        updates["curator"] = args.curator
    if args.log_level:
        updates["log_level"] = args.log_level
    if args.ledger:
        updates["failure_ledger_path"] = args.ledger
    if not updates:
        return settings
    return settings.model_copy(update=updates)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run a harvest from the command line.

    Returns:
        0 once the run completed, 1 if it was aborted
    """
    args = build_parser().parse_args(argv)
    settings = apply_overrides(load_settings(), args)

    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        json_format=settings.log_json,
    )

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)
        logger.info(f"Metrics exposed on port {settings.metrics_port}")

    try:
        report = asyncio.run(run_harvest(settings, create_schema=args.create_schema))
    except KeyboardInterrupt:
        logger.warning("Harvest interrupted by user")
        return 130
    except AuthenticationError as e:
        logger.error(f"Harvest aborted, authentication failed: {e}")
        return 1
    except StorageError as e:
        logger.error(f"Harvest aborted, storage unavailable: {e}", exc_info=True)
        return 1

    failures = sum(report.failures_by_phase.values())
    logger.info(
        f"Harvest of '{report.curator}' finished: {report.playlists_seen} playlists seen, "
        f"{failures} failures recorded"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
