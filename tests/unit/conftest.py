"""
Pytest configuration and shared fixtures for unit tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from access_log_pipeline.config import clear_settings_cache
from access_log_pipeline.ingestion import LogRecord

EXAMPLE_LINE = (
    '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET /index.html HTTP/1.0" '
    '200 2326 "-" "Mozilla/5.0"'
)

COMBINED_LINE = (
    '203.0.113.9 ident frank [01/Jan/2024:00:00:01 +0100] '
    '"POST /api/v1/items?id=3 HTTP/1.1" 201 512 '
    '"https://example.com/start" "curl/8.4.0 (x86_64-pc-linux-gnu)"'
)


@pytest.fixture
def example_line() -> str:
    """Canonical combined-format line."""
    return EXAMPLE_LINE


@pytest.fixture
def combined_line() -> str:
    """Combined-format line with user, referer and query string."""
    return COMBINED_LINE


@pytest.fixture
def sample_record() -> LogRecord:
    """A fully populated LogRecord."""
    return LogRecord(
        remote_host="192.0.2.10",
        remote_logname="-",
        user="alice",
        timestamp=datetime(2024, 3, 5, 8, 30, 0, tzinfo=timezone(timedelta(hours=2))),
        method="GET",
        path="/reports/2024",
        protocol="HTTP/2.0",
        status_code=404,
        bytes_sent=153,
        referer="https://example.org/",
        user_agent='Agent "quoted" \\ slash',
    )


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per config path; isolate every test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
