"""
Read access to stored access log records.
"""

import logging
from typing import Callable, Optional, Union

import pandas as pd

from ..config.constants import MAX_STATUS_CODE, MIN_STATUS_CODE
from ..ingestion.base import LogRecord
from ..storage import StorageBackend, get_backend

logger = logging.getLogger(__name__)

DATAFRAME_COLUMNS = [
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
]


class QueryInputError(Exception):
    """
    Raised when a query filter value is not acceptable.

    Attributes:
        value: The rejected input
        message: Detailed error message
    """

    def __init__(self, message: str, value: object = None):
        self.message = message
        self.value = value
        super().__init__(message)


def parse_status_code(value: Union[int, str]) -> int:
    """
    Validate a status code given as an int or as text.

    Raises:
        QueryInputError: If the value is not an integer in 100-599
    """
    if isinstance(value, bool):
        raise QueryInputError(f"Invalid status code: {value!r}", value=value)

    if isinstance(value, int):
        code = value
    elif isinstance(value, str):
        try:
            code = int(value.strip())
        except ValueError:
            raise QueryInputError(
                f"Status code must be an integer, got {value!r}", value=value
            ) from None
    else:
        raise QueryInputError(f"Invalid status code: {value!r}", value=value)

    if not MIN_STATUS_CODE <= code <= MAX_STATUS_CODE:
        raise QueryInputError(
            f"Status code must be between {MIN_STATUS_CODE} and "
            f"{MAX_STATUS_CODE}, got {code}",
            value=value,
        )
    return code


class QueryService:
    """
    Lists stored records, optionally filtered by HTTP status.

    Results are always in storage order. Each call opens its own storage
    handle, so a query never sees a partially written batch.
    """

    def __init__(
        self, backend_factory: Optional[Callable[[], StorageBackend]] = None
    ):
        self._backend_factory = backend_factory or get_backend

    def list_all(self) -> list[LogRecord]:
        """Return every stored record."""
        return self._fetch()

    def filter_by_status(self, code: Union[int, str]) -> list[LogRecord]:
        """
        Return the records whose status equals ``code``.

        Args:
            code: Status code as int or text (e.g. 404 or "404")

        Raises:
            QueryInputError: If code is not an integer in 100-599
        """
        return self._fetch(parse_status_code(code))

    def _fetch(self, status_code: Optional[int] = None) -> list[LogRecord]:
        with self._backend_factory() as backend:
            backend.initialize()
            rows = backend.fetch_access_logs(status_code=status_code)
        logger.debug(f"Fetched {len(rows)} access log rows (status={status_code})")
        return [LogRecord.from_dict(row) for row in rows]

    @staticmethod
    def to_dataframe(records: list[LogRecord]) -> pd.DataFrame:
        """
        Convert records to a DataFrame, one row per record.

        Timestamps are kept as ISO 8601 text so each row keeps its own
        UTC offset.
        """
        return pd.DataFrame(
            [record.to_dict() for record in records], columns=DATAFRAME_COLUMNS
        )
