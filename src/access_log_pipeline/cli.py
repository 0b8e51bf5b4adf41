"""
Command-line entry point for the access log pipeline.

Usage:
    # Start the scheduled ingestion service (every 5 seconds by default)
    access-log-pipeline

    # Ingest the configured file once right away, then keep the schedule
    access-log-pipeline process

    # Browse stored logs
    access-log-pipeline console

    # Override configuration
    access-log-pipeline process --config config.yaml --log-file logs/access.log --db-path data/logs.db
"""

import argparse
import dataclasses
import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config.settings import Settings, get_settings
from .ingestion.exceptions import IngestionError
from .pipeline import BatchIngestor, setup_logging
from .query import QueryConsole, QueryService
from .scheduling import IngestionScheduler
from .storage import StorageBackend, StorageError, backend_factory

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="access-log-pipeline",
        description="Ingest combined-format access logs into SQLite on a schedule",
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=["process", "console"],
        help="'process' ingests once before scheduling; "
        "'console' opens the query console. "
        "Without a command the scheduled service starts.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML config file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Access log file to ingest (default: from settings)",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from file/env and apply command-line overrides."""
    settings = get_settings(str(args.config) if args.config else None)

    overrides = {}
    if args.log_file:
        overrides["log_file_path"] = args.log_file
    if args.db_path:
        overrides["sqlite_db_path"] = args.db_path

    # get_settings() is cached; never mutate the shared instance
    return dataclasses.replace(settings, **overrides) if overrides else settings


def check_storage(factory: Callable[[], StorageBackend]) -> bool:
    """Open the configured store once at startup and report its health."""
    try:
        with factory() as backend:
            health = backend.health_check()
    except StorageError as e:
        logger.error(f"Storage unavailable: {e}")
        return False

    if not health.healthy:
        logger.error(f"Storage unavailable: {health.message}")
        return False
    logger.info(
        f"Using {health.backend_type} store {health.details.get('db_path', '')} "
        f"({health.details['row_count']} stored records)"
    )
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.config and not args.config.exists():
        logger.error(f"Config file not found: {args.config}")
        return EXIT_CONFIG_ERROR

    settings = load_settings(args)
    errors = settings.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return EXIT_CONFIG_ERROR

    factory = backend_factory(
        settings.storage_backend, db_path=settings.sqlite_db_path
    )

    if args.command == "console":
        if not check_storage(factory):
            return EXIT_CONFIG_ERROR
        try:
            QueryConsole(QueryService(factory)).run()
        except KeyboardInterrupt:
            pass
        return EXIT_OK

    ingestor = BatchIngestor(factory, settings=settings.ingestion)
    try:
        scheduler = IngestionScheduler(
            ingestor, settings.log_file_path, settings.schedule
        )
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    if not check_storage(factory):
        return EXIT_CONFIG_ERROR

    if args.command == "process":
        try:
            scheduler.run_now()
        except IngestionError as e:
            logger.error(f"Immediate ingestion failed: {e}")

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down")
    finally:
        scheduler.shutdown()

    return EXIT_OK
