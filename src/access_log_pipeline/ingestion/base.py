"""
Data models for access log ingestion.

Provides the parsed record, the per-line parse outcome and the per-run
summary shared by the parser, the batch ingestor and the storage layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..config.constants import MAX_BYTES_SENT, MAX_STATUS_CODE, MIN_STATUS_CODE
from .exceptions import ParseErrorKind, ValidationError


@dataclass(frozen=True)
class LogRecord:
    """
    One access log line in NCSA/Apache combined format.

    Immutable once constructed. Construction validates every constraint,
    so a LogRecord instance is never partially populated.

    Required Fields:
        remote_host: Client host or IP address
        remote_logname: RFC 1413 identity ("-" when unknown)
        user: Authenticated user ("-" when unauthenticated)
        timestamp: Request time, timezone-aware with the original offset
        method: HTTP method from the request line
        path: Request target from the request line
        protocol: Protocol version from the request line
        status_code: HTTP response status (100-599)

    Optional Fields:
        bytes_sent: Response body size, 0 when absent
        referer: Referer header, None when absent
        user_agent: User-Agent header, None when absent
    """

    remote_host: str
    remote_logname: str
    user: str
    timestamp: datetime
    method: str
    path: str
    protocol: str
    status_code: int
    bytes_sent: int = 0
    referer: Optional[str] = None
    user_agent: Optional[str] = None

    def __post_init__(self):
        if not self.remote_host:
            raise ValidationError("remote_host must be non-empty", field="remote_host")
        if not isinstance(self.timestamp, datetime) or self.timestamp.tzinfo is None:
            raise ValidationError(
                "timestamp must be a timezone-aware datetime",
                field="timestamp",
                value=self.timestamp,
            )
        if not self.method or not self.path or not self.protocol:
            raise ValidationError(
                "request line requires method, path and protocol", field="request"
            )
        if not MIN_STATUS_CODE <= self.status_code <= MAX_STATUS_CODE:
            raise ValidationError(
                f"status_code must be {MIN_STATUS_CODE}-{MAX_STATUS_CODE}",
                field="status_code",
                value=self.status_code,
            )
        if not 0 <= self.bytes_sent <= MAX_BYTES_SENT:
            raise ValidationError(
                f"bytes_sent must be 0-{MAX_BYTES_SENT}",
                field="bytes_sent",
                value=self.bytes_sent,
            )
        if self.referer == "":
            raise ValidationError("absent referer must be None", field="referer")
        if self.user_agent == "":
            raise ValidationError("absent user_agent must be None", field="user_agent")

    @property
    def request(self) -> str:
        """The original request line, e.g. ``GET /index.html HTTP/1.0``."""
        return f"{self.method} {self.path} {self.protocol}"

    def to_dict(self) -> dict:
        """
        Convert to dictionary representation.

        Returns:
            Dictionary with all fields; timestamp as ISO 8601 text
        """
        return {
            "remote_host": self.remote_host,
            "remote_logname": self.remote_logname,
            "user": self.user,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "path": self.path,
            "protocol": self.protocol,
            "status_code": self.status_code,
            "bytes_sent": self.bytes_sent,
            "referer": self.referer,
            "user_agent": self.user_agent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LogRecord":
        """
        Create a LogRecord from a dictionary (e.g. a stored row).

        Args:
            data: Dictionary with record fields. Timestamp can be a datetime
                  or an ISO 8601 string. Unknown keys (id, _ingested_at)
                  are ignored.

        Returns:
            LogRecord instance

        Raises:
            ValidationError: If required fields are missing or invalid
        """
        required_fields = [
            "remote_host",
            "remote_logname",
            "user",
            "timestamp",
            "method",
            "path",
            "protocol",
            "status_code",
        ]
        for field_name in required_fields:
            if data.get(field_name) is None:
                raise ValidationError(
                    f"Missing required field: {field_name}",
                    field=field_name,
                )

        timestamp = cls._parse_timestamp_value(data["timestamp"])
        if timestamp is None:
            raise ValidationError(
                f"Invalid timestamp format: {data['timestamp']}",
                field="timestamp",
                value=data["timestamp"],
            )

        return cls(
            remote_host=data["remote_host"],
            remote_logname=data["remote_logname"],
            user=data["user"],
            timestamp=timestamp,
            method=data["method"],
            path=data["path"],
            protocol=data["protocol"],
            status_code=int(data["status_code"]),
            bytes_sent=int(data.get("bytes_sent") or 0),
            referer=data.get("referer") or None,
            user_agent=data.get("user_agent") or None,
        )

    @staticmethod
    def _parse_timestamp_value(value: Any) -> Optional[datetime]:
        """Parse a datetime or ISO 8601 string; None if not possible."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class LineError:
    """Why one line was rejected."""

    kind: ParseErrorKind
    message: str


@dataclass(frozen=True)
class ParseResult:
    """
    Outcome of parsing one line: exactly one of ``record`` or ``error``.
    """

    record: Optional[LogRecord] = None
    error: Optional[LineError] = None

    @property
    def ok(self) -> bool:
        """True if the line produced a record."""
        return self.record is not None

    @classmethod
    def success(cls, record: LogRecord) -> "ParseResult":
        return cls(record=record)

    @classmethod
    def failure(cls, kind: ParseErrorKind, message: str) -> "ParseResult":
        return cls(error=LineError(kind=kind, message=message))


@dataclass(frozen=True)
class RejectedLine:
    """A line that failed to parse, labelled with its 1-based line number."""

    line_number: int
    kind: ParseErrorKind
    message: str

    def to_dict(self) -> dict:
        return {
            "line_number": self.line_number,
            "kind": self.kind.value,
            "message": self.message,
        }


@dataclass
class IngestSummary:
    """
    Result of one ingestion run.

    ``accepted + len(rejected) + blank_lines == lines_read`` always holds.
    """

    file_path: str
    accepted: int = 0
    rejected: list[RejectedLine] = field(default_factory=list)
    lines_read: int = 0
    blank_lines: int = 0
    committed: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now().astimezone())
    completed_at: Optional[datetime] = None

    @property
    def rejected_count(self) -> int:
        return len(self.rejected)

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get run duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization."""
        return {
            "file_path": self.file_path,
            "accepted": self.accepted,
            "rejected_count": self.rejected_count,
            "rejected": [r.to_dict() for r in self.rejected],
            "lines_read": self.lines_read,
            "blank_lines": self.blank_lines,
            "committed": self.committed,
            "started_at": self.started_at.isoformat(),
            "completed_at": (
                self.completed_at.isoformat() if self.completed_at else None
            ),
            "duration_seconds": self.duration_seconds,
        }
