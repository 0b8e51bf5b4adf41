"""
Interactive console for browsing stored access logs.
"""

import logging
from typing import Callable, Optional

from ..ingestion.base import LogRecord
from ..storage import StorageError
from .service import QueryInputError, QueryService

logger = logging.getLogger(__name__)

MENU_LINES = (
    "1. List all logs",
    "2. Filter logs by status code",
    "3. Exit",
)


def format_entry(record: LogRecord) -> str:
    """One console line per record: ``{timestamp}: {request} - {status}``."""
    return f"{record.timestamp.isoformat()}: {record.request} - {record.status_code}"


class QueryConsole:
    """
    Numbered-menu loop over a QueryService.

    Reading end-of-input exits the loop like choosing ``3``.
    """

    def __init__(
        self,
        service: QueryService,
        input_func: Optional[Callable[[str], str]] = None,
        output_func: Optional[Callable[[str], None]] = None,
    ):
        self._service = service
        self._input = input_func or input
        self._output = output_func or print

    def run(self) -> None:
        """Show the menu until the user exits."""
        while True:
            for line in MENU_LINES:
                self._output(line)

            choice = self._prompt("Choose an option: ")
            if choice is None or choice == "3":
                return
            if choice == "1":
                self._query(self._service.list_all)
            elif choice == "2":
                code = self._prompt("Enter status code: ")
                if code is None:
                    return
                self._query(self._service.filter_by_status, code)
            else:
                self._output("Invalid option")

    def _query(self, fetch: Callable[..., list[LogRecord]], *args) -> None:
        """Run one query and print its result; failures return to the menu."""
        try:
            records = fetch(*args)
        except QueryInputError as e:
            logger.debug(f"Rejected status filter: {e}")
            self._output("Invalid status code")
            return
        except StorageError as e:
            logger.error(f"Query failed: {e}")
            self._output("Query failed, please try again")
            return
        self._show(records)

    def _prompt(self, text: str) -> Optional[str]:
        try:
            return self._input(text).strip()
        except EOFError:
            return None

    def _show(self, records: list[LogRecord]) -> None:
        if not records:
            self._output("No log entries found")
            return
        for record in records:
            self._output(format_entry(record))
