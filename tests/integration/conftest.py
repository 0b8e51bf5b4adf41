"""
Shared fixtures for integration tests.

Provides:
- Temporary SQLite database for isolated testing
- Backend factory bound to that database
- Access log file writer with valid and invalid sample lines
"""

import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from access_log_pipeline.config import clear_settings_cache
from access_log_pipeline.ingestion import LogRecord, format_line
from access_log_pipeline.storage import backend_factory, get_backend

# =============================================================================
# SAMPLE DATA
# =============================================================================

INVALID_LINES = [
    "this is not a log line",
    '127.0.0.1 - - [2023-10-10 13:55:36] "GET / HTTP/1.1" 200 12 "-" "UA"',
    '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET / HTTP/1.1" abc 12 "-" "UA"',
    '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET / HTTP/1.1" 200 -12 "-" "UA"',
    '127.0.0.1 - - [10/Oct/2023:13:55:36 -0700] "GET /" 200 12 "-" "UA"',
]


def generate_sample_records(
    num_records: int = 20,
    statuses: list[int] = None,
    seed: int = 42,
) -> list[LogRecord]:
    """
    Generate sample access log records.

    Args:
        num_records: Number of records to generate (ignored if statuses given)
        statuses: Explicit status code per record, in order
        seed: Random seed for reproducibility (default: 42)

    Returns:
        List of LogRecord objects
    """
    rng = random.Random(seed)
    hosts = ["10.0.0.1", "10.0.0.2", "192.0.2.7", "203.0.113.40"]
    paths = ["/", "/index.html", "/docs/getting-started", "/api/v1/items?id=3"]
    agents = ["Mozilla/5.0", "curl/8.4.0", None]
    tz = timezone(timedelta(hours=-7))
    start = datetime(2023, 10, 10, 13, 0, 0, tzinfo=tz)

    if statuses is None:
        statuses = [rng.choice([200, 200, 200, 301, 404, 500]) for _ in range(num_records)]

    return [
        LogRecord(
            remote_host=rng.choice(hosts),
            remote_logname="-",
            user=rng.choice(["-", "frank"]),
            timestamp=start + timedelta(seconds=i),
            method=rng.choice(["GET", "POST"]),
            path=rng.choice(paths),
            protocol="HTTP/1.1",
            status_code=status,
            bytes_sent=rng.randint(0, 50_000),
            referer=rng.choice([None, "https://example.com/"]),
            user_agent=rng.choice(agents),
        )
        for i, status in enumerate(statuses)
    ]


# =============================================================================
# STORAGE FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test_access_logs.db"


@pytest.fixture
def sqlite_backend(temp_db_path: Path):
    """
    Create an initialized SQLite backend with temporary database.

    Automatically cleans up after test.
    """
    backend = get_backend("sqlite", db_path=temp_db_path)
    backend.initialize()
    yield backend
    backend.close()


@pytest.fixture
def db_factory(temp_db_path: Path):
    """Zero-argument backend factory bound to the temporary database."""
    return backend_factory("sqlite", db_path=temp_db_path)


@pytest.fixture
def sample_records() -> list[LogRecord]:
    return generate_sample_records(20)


# =============================================================================
# LOG FILE FIXTURES
# =============================================================================


@pytest.fixture
def write_log_file(tmp_path: Path):
    """
    Write lines to a log file and return its path.

    Usage:
        path = write_log_file(["line 1", "line 2"], name="access.log")
    """

    def _write(lines: list[str], name: str = "access.log") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def mixed_log_file(write_log_file, sample_records):
    """Log file with 20 valid lines, 5 invalid lines and 2 blank lines."""
    lines = [format_line(r) for r in sample_records]
    # Spread invalid and blank lines through the file
    for offset, bad in enumerate(INVALID_LINES):
        lines.insert(offset * 4 + 1, bad)
    lines.insert(3, "")
    lines.append("   ")
    return write_log_file(lines)
