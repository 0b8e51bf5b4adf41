#!/usr/bin/env python3
"""
Export stored access logs to CSV.

Usage:
    # Export everything
    python scripts/export_access_logs.py --output data/reports/access_logs.csv

    # Export only 404 responses
    python scripts/export_access_logs.py --status 404 --output data/reports/not_found.csv
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from access_log_pipeline.config import get_settings
from access_log_pipeline.pipeline import setup_logging
from access_log_pipeline.query import QueryInputError, QueryService
from access_log_pipeline.storage import StorageError, backend_factory

logger = logging.getLogger(__name__)


def export_to_csv(
    service: QueryService, output_path: Path, status: Optional[str] = None
) -> int:
    """
    Export records to a CSV file.

    Args:
        service: Query service over the database
        output_path: Destination CSV file
        status: Optional status code filter

    Returns:
        Number of records exported
    """
    records = (
        service.filter_by_status(status) if status is not None else service.list_all()
    )

    if not records:
        logger.warning("No access logs found matching criteria")
        return 0

    df = QueryService.to_dataframe(records)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)

    logger.info(f"Exported {len(records)} access logs to {output_path}")
    return len(records)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Export stored access logs to CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        required=True,
        help="Output CSV file path",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        help="Path to SQLite database (default: from settings)",
    )
    parser.add_argument(
        "--status",
        type=str,
        help="Only export records with this HTTP status code",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    db_path = args.db_path or Path(get_settings().sqlite_db_path)
    service = QueryService(backend_factory("sqlite", db_path=db_path))

    try:
        count = export_to_csv(service, args.output, args.status)
    except QueryInputError as e:
        parser.error(str(e))
    except StorageError as e:
        logger.error(f"Export failed: {e}")
        return 1

    print(f"Exported {count:,} records to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
