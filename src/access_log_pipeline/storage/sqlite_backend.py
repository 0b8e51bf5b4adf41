"""
SQLite storage backend implementation.

Stores parsed access log records in a single ``access_logs`` table. Each
batch insert runs in one transaction, so readers see a batch either fully
present or fully absent.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Sequence

from ..config.constants import DEFAULT_SQLITE_DB_PATH, TABLE_ACCESS_LOGS
from .base import (
    QueryError,
    SchemaError,
    StorageBackend,
    StorageConnectionError,
    StorageHealth,
)

if TYPE_CHECKING:
    from ..ingestion.base import LogRecord

logger = logging.getLogger(__name__)


# =============================================================================
# SQLite Schema Definitions
# =============================================================================

ACCESS_LOGS_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_ACCESS_LOGS} (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    remote_host TEXT NOT NULL,
    remote_logname TEXT NOT NULL,
    user TEXT NOT NULL,
    timestamp TEXT NOT NULL,  -- ISO 8601 with the original UTC offset
    method TEXT NOT NULL,
    path TEXT NOT NULL,
    protocol TEXT NOT NULL,
    status_code INTEGER NOT NULL,
    bytes_sent INTEGER NOT NULL DEFAULT 0,
    referer TEXT,
    user_agent TEXT,
    _ingested_at TEXT NOT NULL,
    CONSTRAINT valid_status CHECK (status_code BETWEEN 100 AND 599),
    CONSTRAINT valid_bytes CHECK (bytes_sent >= 0)
)
"""

# Index definitions for query performance
INDEX_DEFINITIONS = [
    f"CREATE INDEX IF NOT EXISTS idx_access_status ON {TABLE_ACCESS_LOGS}(status_code)",
    f"CREATE INDEX IF NOT EXISTS idx_access_timestamp ON {TABLE_ACCESS_LOGS}(timestamp)",
]

ACCESS_LOG_COLUMNS = (
    "remote_host",
    "remote_logname",
    "user",
    "timestamp",
    "method",
    "path",
    "protocol",
    "status_code",
    "bytes_sent",
    "referer",
    "user_agent",
    "_ingested_at",
)

# =============================================================================
# SQLite Backend Implementation
# =============================================================================


class SQLiteBackend(StorageBackend):
    """
    SQLite storage backend for access log records.
    """

    def __init__(
        self,
        db_path: Path | str = DEFAULT_SQLITE_DB_PATH,
        *,
        check_same_thread: bool = False,
        timeout: float = 30.0,
    ):
        """
        Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file
            check_same_thread: SQLite check_same_thread parameter
            timeout: Seconds to wait for a database lock
        """
        self.db_path = Path(db_path)
        self._check_same_thread = check_same_thread
        self._timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

        # Ensure parent directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        """Return backend type identifier."""
        return "sqlite"

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=self._check_same_thread,
                    timeout=self._timeout,
                )
                self._connection.row_factory = sqlite3.Row
                logger.debug(f"Connected to SQLite database: {self.db_path}")
            except sqlite3.Error as e:
                raise StorageConnectionError(
                    f"Failed to connect to SQLite database: {e}"
                ) from e
        return self._connection

    @contextmanager
    def _cursor(self):
        """Context manager for database cursor with automatic commit/rollback."""
        conn = self._get_connection()
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            if "no such table" in str(e):
                raise SchemaError(f"SQLite schema missing: {e}") from e
            raise QueryError(f"SQLite query failed: {e}") from e
        finally:
            cursor.close()

    def initialize(self) -> None:
        """
        Initialize database with the access_logs table and indexes.

        Safe to call multiple times - uses IF NOT EXISTS.
        """
        logger.debug(f"Initializing SQLite database: {self.db_path}")

        with self._cursor() as cursor:
            cursor.execute(ACCESS_LOGS_SCHEMA)
            for index_sql in INDEX_DEFINITIONS:
                cursor.execute(index_sql)

    def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("SQLite connection closed")

    def _to_row(self, record: "LogRecord", ingested_at: str) -> dict:
        """Convert a LogRecord into named parameters for the insert."""
        row = record.to_dict()
        row["_ingested_at"] = ingested_at
        return row

    def insert_access_logs(self, records: Sequence["LogRecord"]) -> int:
        """
        Insert a batch of records into access_logs in one transaction.

        Args:
            records: Parsed LogRecord objects

        Returns:
            Number of records inserted
        """
        if not records:
            return 0

        columns = ", ".join(ACCESS_LOG_COLUMNS)
        placeholders = ", ".join(f":{column}" for column in ACCESS_LOG_COLUMNS)
        sql = f"INSERT INTO {TABLE_ACCESS_LOGS} ({columns}) VALUES ({placeholders})"

        now = datetime.now().astimezone().isoformat()
        rows = [self._to_row(record, now) for record in records]

        with self._cursor() as cursor:
            cursor.executemany(sql, rows)
            # executemany may not set rowcount correctly; use len instead
            return len(rows)

    def fetch_access_logs(self, status_code: Optional[int] = None) -> list[dict]:
        """
        Read access log rows ordered by id (storage order).

        Args:
            status_code: Optional exact status code filter

        Returns:
            List of row dictionaries
        """
        sql = f"SELECT id, {', '.join(ACCESS_LOG_COLUMNS)} FROM {TABLE_ACCESS_LOGS}"
        params: dict = {}
        if status_code is not None:
            sql += " WHERE status_code = :status_code"
            params["status_code"] = status_code
        sql += " ORDER BY id"
        return self._fetch(sql, params)

    def count_access_logs(self) -> int:
        rows = self._fetch(f"SELECT COUNT(*) AS n FROM {TABLE_ACCESS_LOGS}")
        return rows[0]["n"]

    def _fetch(self, sql: str, params: Optional[dict] = None) -> list[dict]:
        with self._cursor() as cursor:
            cursor.execute(sql, params or {})
            return [dict(row) for row in cursor.fetchall()]

    def health_check(self) -> StorageHealth:
        """Base health check plus the database file location and size."""
        health = super().health_check()
        health.details["db_path"] = str(self.db_path)
        if self.db_path.exists():
            health.details["db_size_bytes"] = self.db_path.stat().st_size
        return health
