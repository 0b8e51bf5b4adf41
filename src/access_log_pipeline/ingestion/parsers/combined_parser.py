"""
NCSA/Apache combined log format parser.

Combined Log Format:
    host logname user [timestamp] "method path protocol" status bytes "referer" "user-agent"

    127.0.0.1 - frank [10/Oct/2023:13:55:36 -0700] "GET /index.html HTTP/1.0" 200 2326 "-" "Mozilla/5.0"

The trailing bytes, referer and user-agent fields are optional, which also
makes plain Common Log Format lines acceptable.
"""

import re
from datetime import datetime
from typing import Optional

from ...config.constants import (
    MAX_BYTES_SENT,
    MAX_STATUS_CODE,
    MIN_STATUS_CODE,
    MONTH_ABBREVIATIONS,
    NUMERIC_TIMESTAMP_FORMAT,
    PLACEHOLDER,
    TIMESTAMP_PATTERN,
)
from ..base import LogRecord, ParseResult
from ..exceptions import ParseError, ParseErrorKind, ValidationError
from .tokenizer import Token, TokenKind, tokenize

_TIMESTAMP_RE = re.compile(TIMESTAMP_PATTERN)
_MONTH_NUMBERS = {name: f"{i:02d}" for i, name in enumerate(MONTH_ABBREVIATIONS, start=1)}

# host, logname, user, [timestamp], "request", status
_REQUIRED_LAYOUT = (
    ("remote_host", TokenKind.BARE),
    ("remote_logname", TokenKind.BARE),
    ("user", TokenKind.BARE),
    ("timestamp", TokenKind.BRACKETED),
    ("request", TokenKind.QUOTED),
    ("status", TokenKind.BARE),
)


class CombinedLogParser:
    """
    Parser for combined-format access log lines.

    ``parse`` is pure: it never raises, never logs and returns the same
    result for the same input. Failures come back as a ParseResult whose
    ``error.kind`` is a ParseErrorKind.

    Usage:
        parser = CombinedLogParser()
        result = parser.parse(line)
        if result.ok:
            store(result.record)
        else:
            report(result.error.kind, result.error.message)
    """

    def parse(self, line: str) -> ParseResult:
        """
        Parse one log line.

        Args:
            line: Raw log line (trailing newline optional)

        Returns:
            ParseResult holding either a LogRecord or a LineError
        """
        try:
            return ParseResult.success(self.parse_record(line))
        except ParseError as e:
            return ParseResult.failure(e.kind, e.message)

    def parse_record(self, line: str) -> LogRecord:
        """
        Parse one log line, raising on failure.

        Raises:
            ParseError: with kind MALFORMED_LINE, BAD_TIMESTAMP or BAD_NUMBER
        """
        tokens = tokenize(line.rstrip("\r\n"))
        self._check_layout(tokens)

        remote_host, remote_logname, user, ts_token, req_token, status_token = (
            tokens[: len(_REQUIRED_LAYOUT)]
        )
        trailing = tokens[len(_REQUIRED_LAYOUT):]

        method, path, protocol = self._split_request(req_token.value)
        timestamp = self._parse_timestamp(ts_token.value)
        status_code = self._parse_status(status_token.value)
        bytes_sent, referer, user_agent = self._parse_trailing(trailing)

        try:
            return LogRecord(
                remote_host=remote_host.value,
                remote_logname=remote_logname.value,
                user=user.value,
                timestamp=timestamp,
                method=method,
                path=path,
                protocol=protocol,
                status_code=status_code,
                bytes_sent=bytes_sent,
                referer=referer,
                user_agent=user_agent,
            )
        except ValidationError as e:
            raise ParseError(str(e), kind=ParseErrorKind.MALFORMED_LINE) from e

    # =========================================================================
    # Field helpers
    # =========================================================================

    @staticmethod
    def _check_layout(tokens: list[Token]) -> None:
        """Verify the required leading tokens are present with the right kinds."""
        if len(tokens) < len(_REQUIRED_LAYOUT):
            raise ParseError(
                f"Expected at least {len(_REQUIRED_LAYOUT)} fields, got {len(tokens)}",
                kind=ParseErrorKind.MALFORMED_LINE,
            )
        for token, (name, kind) in zip(tokens, _REQUIRED_LAYOUT):
            if token.kind is not kind:
                raise ParseError(
                    f"Field '{name}' must be {kind.value}, "
                    f"got {token.kind.value} at column {token.position}",
                    kind=ParseErrorKind.MALFORMED_LINE,
                )

    @staticmethod
    def _split_request(request: str) -> tuple[str, str, str]:
        """Split the request line into method, path and protocol."""
        parts = request.split()
        if len(parts) < 3:
            raise ParseError(
                f"Request line needs method, path and protocol: {request!r}",
                kind=ParseErrorKind.MALFORMED_LINE,
            )
        # Anything between method and protocol belongs to the path
        return parts[0], " ".join(parts[1:-1]), parts[-1]

    @staticmethod
    def _parse_timestamp(value: str) -> datetime:
        """Parse ``dd/Mon/yyyy:HH:MM:SS +zzzz`` keeping the UTC offset."""
        match = _TIMESTAMP_RE.match(value)
        if not match or match.group("month") not in _MONTH_NUMBERS:
            raise ParseError(
                f"Timestamp does not match dd/Mon/yyyy:HH:mm:ss +zzzz: {value!r}",
                kind=ParseErrorKind.BAD_TIMESTAMP,
            )
        start, end = match.span("month")
        numeric = f"{value[:start]}{_MONTH_NUMBERS[match.group('month')]}{value[end:]}"
        try:
            return datetime.strptime(numeric, NUMERIC_TIMESTAMP_FORMAT)
        except ValueError as e:
            raise ParseError(
                f"Invalid timestamp {value!r}: {e}",
                kind=ParseErrorKind.BAD_TIMESTAMP,
            ) from e

    @staticmethod
    def _parse_status(value: str) -> int:
        status = _parse_int(value, len(str(MAX_STATUS_CODE)), "Status code")
        if not MIN_STATUS_CODE <= status <= MAX_STATUS_CODE:
            raise ParseError(
                f"Status code out of range {MIN_STATUS_CODE}-{MAX_STATUS_CODE}: {value!r}",
                kind=ParseErrorKind.BAD_NUMBER,
            )
        return status

    @staticmethod
    def _parse_bytes(value: str) -> int:
        if value == PLACEHOLDER:
            return 0
        bytes_sent = _parse_int(value, len(str(MAX_BYTES_SENT)), "Byte count")
        if bytes_sent > MAX_BYTES_SENT:
            raise ParseError(
                f"Byte count exceeds {MAX_BYTES_SENT}: {value!r}",
                kind=ParseErrorKind.BAD_NUMBER,
            )
        return bytes_sent

    def _parse_trailing(
        self, tokens: list[Token]
    ) -> tuple[int, Optional[str], Optional[str]]:
        """
        Parse the optional ``bytes "referer" "user-agent"`` tail.

        A missing byte count is 0; a missing or "-" referer/user-agent is None.
        Tokens after the user-agent are ignored.
        """
        bytes_sent = 0
        remaining = list(tokens)

        if remaining and remaining[0].kind is TokenKind.BARE:
            bytes_sent = self._parse_bytes(remaining.pop(0).value)

        optional_values: list[Optional[str]] = []
        for name in ("referer", "user_agent"):
            if not remaining:
                optional_values.append(None)
                continue
            token = remaining.pop(0)
            if token.kind is not TokenKind.QUOTED:
                raise ParseError(
                    f"Field '{name}' must be quoted, got {token.kind.value} "
                    f"at column {token.position}",
                    kind=ParseErrorKind.MALFORMED_LINE,
                )
            optional_values.append(_optional(token.value))

        referer, user_agent = optional_values
        return bytes_sent, referer, user_agent


def _parse_int(value: str, max_digits: int, label: str) -> int:
    """
    Convert an unsigned decimal token.

    Tokens longer than ``max_digits`` (ignoring leading zeros) are rejected
    before conversion, so huge digit runs never reach ``int()``.
    """
    if not (value.isascii() and value.isdigit()):
        raise ParseError(
            f"{label} is not a non-negative integer: {value!r}",
            kind=ParseErrorKind.BAD_NUMBER,
        )
    if len(value.lstrip("0")) > max_digits:
        raise ParseError(
            f"{label} has too many digits ({len(value)})",
            kind=ParseErrorKind.BAD_NUMBER,
        )
    return int(value.lstrip("0") or "0")


def _optional(value: str) -> Optional[str]:
    """Map "-" and empty values to None."""
    if value == "" or value == PLACEHOLDER:
        return None
    return value


def parse_line(line: str) -> ParseResult:
    """
    Parse a single combined-format line.

    Convenience wrapper around CombinedLogParser.parse.
    """
    return CombinedLogParser().parse(line)
