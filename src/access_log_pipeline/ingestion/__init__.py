"""
Ingestion layer for web-server access logs.

Parses NCSA/Apache combined log lines into immutable LogRecord objects,
reporting per-line failures as values rather than exceptions.

Usage:
    from access_log_pipeline.ingestion import CombinedLogParser

    parser = CombinedLogParser()
    result = parser.parse(line)
    if result.ok:
        print(result.record.timestamp, result.record.remote_host)
    else:
        print(result.error.kind, result.error.message)
"""

from .base import IngestSummary, LineError, LogRecord, ParseResult, RejectedLine
from .exceptions import (
    FileUnavailableError,
    IngestionCancelledError,
    IngestionError,
    ParseError,
    ParseErrorKind,
    StoreWriteFailedError,
    ValidationError,
)
from .file_utils import open_file_auto_decompress, read_lines
from .parsers import CombinedLogParser, format_line, format_lines, parse_line
from .validation import FileValidationResult, format_file_size, validate_file_path

__all__ = [
    # Data models
    "LogRecord",
    "LineError",
    "ParseResult",
    "RejectedLine",
    "IngestSummary",
    # Exceptions
    "IngestionError",
    "ValidationError",
    "ParseError",
    "ParseErrorKind",
    "FileUnavailableError",
    "StoreWriteFailedError",
    "IngestionCancelledError",
    # Parsing
    "CombinedLogParser",
    "parse_line",
    "format_line",
    "format_lines",
    # File utilities
    "open_file_auto_decompress",
    "read_lines",
    "validate_file_path",
    "FileValidationResult",
    "format_file_size",
]
