"""
Abstract base class for storage backends.

Provides a unified interface for persisting and reading access log records.
The ingestion pipeline only relies on ``insert_access_logs`` being atomic:
a batch is either fully committed or not at all.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from ..ingestion.base import LogRecord


@dataclass
class StorageHealth:
    """Outcome of a backend health check."""

    healthy: bool
    backend_type: str
    message: str
    details: dict = field(default_factory=dict)


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Backends are context managers; leaving the ``with`` block closes them.
    """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Return the backend type identifier (e.g., 'sqlite')."""

    @abstractmethod
    def initialize(self) -> None:
        """
        Create tables and indexes if they don't exist.

        Idempotent: safe to call on every run.
        """

    @abstractmethod
    def close(self) -> None:
        """Close connections and release resources."""

    @abstractmethod
    def insert_access_logs(self, records: Sequence["LogRecord"]) -> int:
        """
        Insert a batch of parsed records in a single transaction.

        Args:
            records: Parsed LogRecord objects, in file order.

        Returns:
            Number of records inserted.

        Raises:
            StorageError: If insertion fails. No record of the batch is
                committed in that case.
        """

    @abstractmethod
    def fetch_access_logs(self, status_code: Optional[int] = None) -> list[dict]:
        """
        Read stored access log rows in storage order.

        Args:
            status_code: Optional exact status code filter

        Returns:
            List of row dictionaries (LogRecord fields plus id, _ingested_at).
        """

    @abstractmethod
    def count_access_logs(self) -> int:
        """
        Number of stored access log rows.

        Raises:
            SchemaError: If the access log table has not been created.
        """

    def health_check(self) -> StorageHealth:
        """
        Check that the store can be initialized and read.

        Never raises; a failure is reported through ``healthy=False``.
        """
        try:
            self.initialize()
            row_count = self.count_access_logs()
        except StorageError as e:
            return StorageHealth(
                healthy=False,
                backend_type=self.backend_type,
                message=f"Health check failed: {e}",
                details={"error": str(e)},
            )
        return StorageHealth(
            healthy=True,
            backend_type=self.backend_type,
            message="Backend is operational",
            details={"row_count": row_count},
        )

    def __enter__(self) -> "StorageBackend":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class StorageError(Exception):
    """Base exception for storage backend errors."""


class StorageConnectionError(StorageError):
    """Raised when connection to storage backend fails."""


class QueryError(StorageError):
    """Raised when a statement fails to execute."""


class SchemaError(StorageError):
    """Raised when a required table is missing."""
