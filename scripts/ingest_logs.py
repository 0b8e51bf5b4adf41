#!/usr/bin/env python3
"""
One-off ingestion of a combined-format access log file.

Usage:
    # Ingest a plain or gzip-compressed log file
    python scripts/ingest_logs.py --input logs/access.log

    # Ingest into a specific database
    python scripts/ingest_logs.py --input logs/access.log.gz --db-path data/access-logs.db

    # Validate without ingesting
    python scripts/ingest_logs.py --input logs/access.log --validate-only

    # Machine-readable summary
    python scripts/ingest_logs.py --input logs/access.log --json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from access_log_pipeline.config import IngestionSettings, get_settings
from access_log_pipeline.ingestion import IngestionError, IngestSummary
from access_log_pipeline.pipeline import BatchIngestor, setup_logging
from access_log_pipeline.storage import backend_factory

logger = logging.getLogger(__name__)

# Rejected lines listed in the text summary
MAX_REJECTED_SHOWN = 20


def print_summary(summary: IngestSummary, validate_only: bool) -> None:
    """Print a human-readable run summary."""
    print("\n" + "=" * 60)
    print("VALIDATION SUMMARY" if validate_only else "INGESTION SUMMARY")
    print("=" * 60)
    print(f"File:        {summary.file_path}")
    print(f"Lines read:  {summary.lines_read:,}")
    print(f"Accepted:    {summary.accepted:,}")
    print(f"Rejected:    {summary.rejected_count:,}")
    print(f"Blank:       {summary.blank_lines:,}")
    if not validate_only:
        print(f"Committed:   {'yes' if summary.committed else 'no'}")
    if summary.duration_seconds is not None:
        print(f"Duration:    {summary.duration_seconds:.2f}s")

    if summary.rejected:
        print("\nRejected lines:")
        for rejected in summary.rejected[:MAX_REJECTED_SHOWN]:
            print(
                f"  line {rejected.line_number}: "
                f"{rejected.kind.value} - {rejected.message}"
            )
        if summary.rejected_count > MAX_REJECTED_SHOWN:
            print(f"  ... and {summary.rejected_count - MAX_REJECTED_SHOWN} more")
    print("=" * 60)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Ingest a combined-format access log file into SQLite",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/ingest_logs.py --input logs/access.log
  python scripts/ingest_logs.py --input logs/access.log.gz --db-path data/access-logs.db
  python scripts/ingest_logs.py --input logs/access.log --validate-only
        """,
    )
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        required=True,
        help="Input log file (plain text or gzip)",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parser threads (default: from settings)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        help="Extra attempts for a failed batch write (default: from settings)",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        help="Parse and report without inserting data",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the run summary as JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be at least 1")
    if args.retries is not None and args.retries < 0:
        parser.error("--retries must be 0 or more")

    settings = get_settings()
    ingestion = IngestionSettings(
        parse_workers=args.workers or settings.ingestion.parse_workers,
        store_write_retries=(
            args.retries
            if args.retries is not None
            else settings.ingestion.store_write_retries
        ),
        retry_base_delay_seconds=settings.ingestion.retry_base_delay_seconds,
        encoding=settings.ingestion.encoding,
    )
    db_path = args.db_path or Path(settings.sqlite_db_path)

    ingestor = BatchIngestor(
        backend_factory("sqlite", db_path=db_path), settings=ingestion
    )

    try:
        summary = ingestor.run(args.input, validate_only=args.validate_only)
    except IngestionError as e:
        logger.error(f"Ingestion failed: {e}")
        return 1

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary(summary, args.validate_only)

    return 0


if __name__ == "__main__":
    sys.exit(main())
