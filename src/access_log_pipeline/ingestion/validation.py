"""
Pre-flight validation of ingestion input files.

Checks existence, type, readability and size of a log file before the
ingestor opens it.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Default file size limits
DEFAULT_MAX_FILE_SIZE_BYTES = 2 * 1024 * 1024 * 1024  # 2 GB
WARN_FILE_SIZE_BYTES = 256 * 1024 * 1024  # 256 MB - warn threshold


class ErrorCodes:
    """Standard error codes for validation errors."""

    FILE_NOT_FOUND = "file_not_found"
    NOT_A_FILE = "not_a_file"
    PERMISSION_DENIED = "permission_denied"
    CANNOT_ACCESS_FILE = "cannot_access_file"
    FILE_TOO_LARGE = "file_too_large"


@dataclass
class ValidationIssue:
    error_code: str
    message: str


@dataclass
class FileValidationResult:
    """Result of validating a file."""

    file_path: Path
    is_valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    file_size_bytes: Optional[int] = None
    is_readable: bool = False

    @property
    def error_message(self) -> str:
        """All error messages joined for reporting."""
        return "; ".join(issue.message for issue in self.errors)

    def fail(self, error_code: str, message: str) -> "FileValidationResult":
        self.is_valid = False
        self.errors.append(ValidationIssue(error_code, message))
        return self


def validate_file_path(
    file_path: Path,
    max_size_bytes: Optional[int] = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> FileValidationResult:
    """
    Check that a log file can be ingested.

    An empty file is valid: it yields an empty batch.

    Args:
        file_path: Log file to check
        max_size_bytes: Reject larger files (None = no limit)

    Returns:
        FileValidationResult; ``error_message`` explains a failure
    """
    file_path = Path(file_path)
    result = FileValidationResult(file_path=file_path, is_valid=True)

    if not file_path.exists():
        return result.fail(
            ErrorCodes.FILE_NOT_FOUND, f"File does not exist: {file_path}"
        )
    if not file_path.is_file():
        return result.fail(ErrorCodes.NOT_A_FILE, f"Path is not a file: {file_path}")

    try:
        size = file_path.stat().st_size
    except OSError as e:
        return result.fail(ErrorCodes.CANNOT_ACCESS_FILE, f"Cannot stat {file_path}: {e}")

    result.file_size_bytes = size
    if max_size_bytes and size > max_size_bytes:
        return result.fail(
            ErrorCodes.FILE_TOO_LARGE,
            f"{file_path} is {format_file_size(size)}, "
            f"over the {format_file_size(max_size_bytes)} limit; rotate it first",
        )
    if size > WARN_FILE_SIZE_BYTES:
        result.warnings.append(
            f"{file_path} is {format_file_size(size)}; reading it whole may be slow"
        )

    if not os.access(file_path, os.R_OK):
        return result.fail(
            ErrorCodes.PERMISSION_DENIED, f"Permission denied: {file_path}"
        )
    result.is_readable = True
    return result


def format_file_size(size_bytes: int) -> str:
    """Human-readable size, e.g. '1.5 MB'."""
    size = float(max(size_bytes, 0))
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"
