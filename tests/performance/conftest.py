"""
Pytest configuration and fixtures for performance tests.

Provides fixtures for generating large access log files.
"""

import gzip
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from access_log_pipeline.config import MONTH_ABBREVIATIONS
from access_log_pipeline.storage import backend_factory

AGENTS = [
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36",
    "curl/8.4.0",
    "-",
]


def make_line(i: int, start: datetime) -> str:
    """Build one combined-format line."""
    octet3 = (i // 256) % 256
    octet4 = i % 256
    when = start + timedelta(seconds=i)
    ts = f"{when:%d}/{MONTH_ABBREVIATIONS[when.month - 1]}/{when:%Y:%H:%M:%S %z}"
    status = random.choice([200, 200, 301, 404, 500])
    return (
        f'192.168.{octet3}.{octet4} - - [{ts}] '
        f'"GET /api/v1/resource/{i} HTTP/1.1" {status} {random.randint(0, 10000)} '
        f'"https://example.com/" "{random.choice(AGENTS)}"'
    )


@pytest.fixture
def log_file_generator(tmp_path: Path):
    """Factory fixture for generating access log files with N lines."""

    def _generate(num_lines: int, compressed: bool = False) -> Path:
        start = datetime(2023, 10, 10, 0, 0, 0, tzinfo=timezone.utc)
        body = "".join(f"{make_line(i, start)}\n" for i in range(num_lines))
        if compressed:
            path = tmp_path / f"access_{num_lines}.log.gz"
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write(body)
        else:
            path = tmp_path / f"access_{num_lines}.log"
            path.write_text(body, encoding="utf-8")
        return path

    return _generate


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "perf.db"


@pytest.fixture
def db_factory(temp_db_path: Path):
    return backend_factory("sqlite", db_path=temp_db_path)
