"""
Custom exceptions for the ingestion module.

Line-level problems (``ParseError``) are recovered inside a batch and only
surface in the run summary. Run-level problems (``FileUnavailableError``,
``StoreWriteFailedError``, ``IngestionCancelledError``) abort the run and
propagate to the caller.
"""

from enum import Enum


class ParseErrorKind(Enum):
    """Why a single log line was rejected."""

    MALFORMED_LINE = "malformed_line"
    BAD_TIMESTAMP = "bad_timestamp"
    BAD_NUMBER = "bad_number"


class IngestionError(Exception):
    """
    Base exception for all ingestion-related errors.

    All other ingestion exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ValidationError(IngestionError):
    """
    Raised when data validation fails.

    Used when a LogRecord is constructed with a value outside its
    allowed range (empty host, status code out of range, ...).

    Attributes:
        field: The field name that failed validation (optional)
        value: The invalid value (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: object | None = None,
    ):
        self.field = field
        self.value = value
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with field and value context."""
        if self.field and self.value is not None:
            return f"{self.message} (field='{self.field}', value={self.value!r})"
        elif self.field:
            return f"{self.message} (field='{self.field}')"
        return self.message


class ParseError(IngestionError):
    """
    Raised when a log line cannot be parsed.

    Attributes:
        kind: ParseErrorKind classifying the failure
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        kind: ParseErrorKind = ParseErrorKind.MALFORMED_LINE,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.kind = kind
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Truncate long lines for readability
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        return self.message


class FileUnavailableError(IngestionError):
    """
    Raised when the input file cannot be opened or read.

    Attributes:
        file_path: The path that could not be read
        reason: Underlying OS/decoding error text
    """

    def __init__(self, file_path: str, reason: str | None = None):
        self.file_path = file_path
        self.reason = reason
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with the failing path."""
        if self.reason:
            return f"Log file unavailable: {self.file_path} - {self.reason}"
        return f"Log file unavailable: {self.file_path}"


class StoreWriteFailedError(IngestionError):
    """
    Raised when the persistence sink rejects a batch.

    The batch is rolled back as a whole; none of its records are committed.

    Attributes:
        record_count: Size of the rejected batch
        attempts: Number of write attempts made
    """

    def __init__(self, message: str, record_count: int = 0, attempts: int = 1):
        self.record_count = record_count
        self.attempts = attempts
        self.message = message
        super().__init__(
            f"{message} (records={record_count}, attempts={attempts})"
        )


class IngestionCancelledError(IngestionError):
    """Raised when a run is cancelled before its batch was committed."""

    pass
