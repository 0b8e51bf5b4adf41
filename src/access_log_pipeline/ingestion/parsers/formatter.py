"""
Serializer for combined log format lines.

``format_line`` is the inverse of ``CombinedLogParser.parse``: parsing a
formatted record yields an equal record.
"""

from typing import Optional

from ...config.constants import MONTH_ABBREVIATIONS, PLACEHOLDER
from ..base import LogRecord


def _quote(value: Optional[str]) -> str:
    """Quote a field, escaping backslashes and double quotes."""
    if value is None:
        return f'"{PLACEHOLDER}"'
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_line(record: LogRecord) -> str:
    """
    Render a LogRecord as one combined-format line (no trailing newline).

    Args:
        record: Record to render

    Returns:
        e.g. ``127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET / HTTP/1.0" 200 2326 "-" "Mozilla/5.0"``
    """
    ts = record.timestamp
    month = MONTH_ABBREVIATIONS[ts.month - 1]
    timestamp = f"{ts:%d}/{month}/{ts:%Y:%H:%M:%S %z}"
    return (
        f"{record.remote_host} {record.remote_logname} {record.user} "
        f"[{timestamp}] {_quote(record.request)} "
        f"{record.status_code} {record.bytes_sent} "
        f"{_quote(record.referer)} {_quote(record.user_agent)}"
    )


def format_lines(records: list[LogRecord]) -> str:
    """Render records as a newline-terminated log file body."""
    return "".join(f"{format_line(record)}\n" for record in records)
