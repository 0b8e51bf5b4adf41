"""
Unit tests for CombinedLogParser.

Tests cover:
- Well-formed combined and common format lines
- Optional bytes, referer and user-agent fields
- Error kinds for malformed lines, bad timestamps and bad numbers
- parse() never raising
"""

from datetime import datetime, timedelta, timezone

import pytest

from access_log_pipeline.ingestion import (
    CombinedLogParser,
    ParseError,
    ParseErrorKind,
    parse_line,
)


@pytest.fixture
def parser() -> CombinedLogParser:
    return CombinedLogParser()


def _line(
    timestamp="10/Oct/2023:13:55:36 -0700",
    request="GET /index.html HTTP/1.0",
    status="200",
    tail=' 2326 "-" "Mozilla/5.0"',
) -> str:
    return f'127.0.0.1 - - [{timestamp}] "{request}" {status}{tail}'


class TestWellFormedLines:
    """Lines that must produce a record."""

    def test_example_line(self, parser, example_line):
        result = parser.parse(example_line)

        assert result.ok
        assert result.error is None
        record = result.record
        assert record.remote_host == "127.0.0.1"
        assert record.remote_logname == "-"
        assert record.user == "-"
        assert record.timestamp == datetime(
            2023, 10, 10, 13, 55, 36, tzinfo=timezone(timedelta(hours=-7))
        )
        assert record.method == "GET"
        assert record.path == "/index.html"
        assert record.protocol == "HTTP/1.0"
        assert record.status_code == 200
        assert record.bytes_sent == 2326
        assert record.referer is None
        assert record.user_agent == "Mozilla/5.0"

    def test_timestamp_keeps_offset(self, parser, example_line):
        record = parser.parse(example_line).record
        assert record.timestamp.utcoffset() == timedelta(hours=-7)
        assert record.timestamp.isoformat() == "2023-10-10T13:55:36-07:00"

    def test_combined_line_with_referer(self, parser, combined_line):
        record = parser.parse(combined_line).record

        assert record.remote_logname == "ident"
        assert record.user == "frank"
        assert record.method == "POST"
        assert record.path == "/api/v1/items?id=3"
        assert record.protocol == "HTTP/1.1"
        assert record.status_code == 201
        assert record.bytes_sent == 512
        assert record.referer == "https://example.com/start"
        assert record.user_agent == "curl/8.4.0 (x86_64-pc-linux-gnu)"

    def test_common_log_format_without_tail(self, parser):
        record = parser.parse(_line(tail=" 1024")).record
        assert record.bytes_sent == 1024
        assert record.referer is None
        assert record.user_agent is None

    def test_missing_bytes_is_zero(self, parser):
        record = parser.parse(_line(tail="")).record
        assert record.bytes_sent == 0

    def test_dash_bytes_is_zero(self, parser):
        record = parser.parse(_line(status="304", tail=' - "-" "-"')).record
        assert record.status_code == 304
        assert record.bytes_sent == 0
        assert record.user_agent is None

    def test_empty_quoted_user_agent_is_none(self, parser):
        record = parser.parse(_line(tail=' 10 "" ""')).record
        assert record.referer is None
        assert record.user_agent is None

    def test_path_with_spaces(self, parser):
        record = parser.parse(_line(request="GET /my file.txt HTTP/1.1")).record
        assert record.method == "GET"
        assert record.path == "/my file.txt"
        assert record.protocol == "HTTP/1.1"

    def test_escaped_quote_in_user_agent(self, parser):
        record = parser.parse(_line(tail=r' 5 "-" "Bot \"v2\""')).record
        assert record.user_agent == 'Bot "v2"'

    def test_extra_trailing_tokens_ignored(self, parser):
        record = parser.parse(_line(tail=' 5 "-" "UA" "extra" 42')).record
        assert record.user_agent == "UA"

    def test_trailing_newline_is_ignored(self, parser, example_line):
        assert parser.parse(example_line + "\r\n").record == (
            parser.parse(example_line).record
        )

    def test_status_bounds(self, parser):
        assert parser.parse(_line(status="100")).record.status_code == 100
        assert parser.parse(_line(status="599")).record.status_code == 599

    def test_parse_is_deterministic(self, parser, combined_line):
        assert parser.parse(combined_line) == parser.parse(combined_line)

    def test_parse_line_helper(self, example_line):
        assert parse_line(example_line).record.status_code == 200


class TestMalformedLines:
    """Lines missing required structure."""

    @pytest.mark.parametrize(
        "line",
        [
            "",
            "garbage",
            '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET /index.html HTTP/1.0"',
            '127.0.0.1 - [10/Oct/2023:13:55:36 -0700] "GET / HTTP/1.0" 200 1',
            '127.0.0.1 - - 10/Oct/2023:13:55:36 "GET / HTTP/1.0" 200 1',
            "127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] GET / HTTP/1.0 200 1",
            '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700 "GET / HTTP/1.0" 200 1',
            '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET / HTTP/1.0 200 1',
        ],
    )
    def test_malformed(self, parser, line):
        result = parser.parse(line)
        assert not result.ok
        assert result.record is None
        assert result.error.kind is ParseErrorKind.MALFORMED_LINE

    def test_request_with_two_parts(self, parser):
        result = parser.parse(_line(request="GET /index.html"))
        assert result.error.kind is ParseErrorKind.MALFORMED_LINE

    def test_empty_request(self, parser):
        result = parser.parse(_line(request="-"))
        assert result.error.kind is ParseErrorKind.MALFORMED_LINE

    def test_unquoted_referer(self, parser):
        result = parser.parse(_line(tail=' 10 http://example.com "UA"'))
        assert result.error.kind is ParseErrorKind.MALFORMED_LINE


class TestBadTimestamp:
    """Timestamps that do not match dd/Mon/yyyy:HH:mm:ss +zzzz."""

    @pytest.mark.parametrize(
        "timestamp",
        [
            "2023-10-10T13:55:36-07:00",
            "10/Oct/2023:13:55:36",
            "1/Oct/2023:13:55:36 -0700",
            "10/Foo/2023:13:55:36 -0700",
            "10/oct/2023:13:55:36 -0700",
            "10/OCT/2023:13:55:36 -0700",
            "10/Sept/2023:13:55:36 -0700",
            "32/Oct/2023:13:55:36 -0700",
            "10/Oct/2023:25:55:36 -0700",
            "10/Oct/2023:13:55:36 PST",
        ],
    )
    def test_bad_timestamp(self, parser, timestamp):
        result = parser.parse(_line(timestamp=timestamp))
        assert result.error.kind is ParseErrorKind.BAD_TIMESTAMP


class TestBadNumber:
    """Non-numeric or out-of-range status and byte counts."""

    @pytest.mark.parametrize("status", ["OK", "20x", "99", "600", "-200", "2.0"])
    def test_bad_status(self, parser, status):
        result = parser.parse(_line(status=status))
        assert result.error.kind is ParseErrorKind.BAD_NUMBER

    @pytest.mark.parametrize("byte_count", ["abc", "-5", "1.5", "12k"])
    def test_bad_bytes(self, parser, byte_count):
        result = parser.parse(_line(tail=f' {byte_count} "-" "UA"'))
        assert result.error.kind is ParseErrorKind.BAD_NUMBER

    def test_huge_status_token(self, parser):
        result = parser.parse(_line(status="9" * 5000))
        assert result.error.kind is ParseErrorKind.BAD_NUMBER

    def test_huge_bytes_token(self, parser):
        result = parser.parse(_line(tail=f' {"9" * 5000} "-" "UA"'))
        assert result.error.kind is ParseErrorKind.BAD_NUMBER

    def test_leading_zeros_do_not_count(self, parser):
        result = parser.parse(
            _line(status="0" * 5000 + "200", tail=f' {"0" * 5000}12 "-" "UA"')
        )
        assert result.ok
        assert result.record.status_code == 200
        assert result.record.bytes_sent == 12

    @pytest.mark.parametrize("byte_count", [str(2**63), "99999999999999999999"])
    def test_bytes_beyond_sqlite_integer(self, parser, byte_count):
        result = parser.parse(_line(tail=f' {byte_count} "-" "UA"'))
        assert result.error.kind is ParseErrorKind.BAD_NUMBER

    def test_largest_storable_bytes(self, parser):
        result = parser.parse(_line(tail=f' {2**63 - 1} "-" "UA"'))
        assert result.record.bytes_sent == 2**63 - 1


class TestParseRecord:
    """parse_record raises where parse returns a failure."""

    def test_parse_record_raises_parse_error(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse_record(_line(status="abc"))
        assert exc_info.value.kind is ParseErrorKind.BAD_NUMBER

    def test_parse_never_raises(self, parser):
        for line in ["[", '"', "\x00\x01", "a b c [d] \"e f g\" 200 - \"", "- - -"]:
            result = parser.parse(line)
            assert not result.ok
