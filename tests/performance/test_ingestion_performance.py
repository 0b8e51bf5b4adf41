"""
Performance benchmarks for the ingestion pipeline.

Covers:
- Combined-format line parsing throughput
- SQLite batch insertion
- Full file-to-database runs, plain and gzip
"""

from datetime import datetime, timezone

from access_log_pipeline.config import IngestionSettings
from access_log_pipeline.ingestion import CombinedLogParser
from access_log_pipeline.pipeline import BatchIngestor
from access_log_pipeline.storage.sqlite_backend import SQLiteBackend

from tests.performance.conftest import make_line


class TestParsingPerformance:
    """Benchmark line parsing throughput."""

    def test_parse_10k_lines(self, benchmark):
        start = datetime(2023, 10, 10, tzinfo=timezone.utc)
        lines = [make_line(i, start) for i in range(10_000)]
        parser = CombinedLogParser()

        def parse_all():
            return sum(1 for line in lines if parser.parse(line).ok)

        assert benchmark(parse_all) == 10_000


class TestSQLiteInsertionPerformance:
    """Benchmark SQLite batch insertion throughput."""

    def test_sqlite_insert_10k_records(self, benchmark, tmp_path):
        start = datetime(2023, 10, 10, tzinfo=timezone.utc)
        parser = CombinedLogParser()
        records = [parser.parse_record(make_line(i, start)) for i in range(10_000)]
        backends = []

        def fresh_backend():
            backend = SQLiteBackend(tmp_path / f"insert_{len(backends)}.db")
            backend.initialize()
            backends.append(backend)
            return (backend,), {}

        def insert_records(backend):
            return backend.insert_access_logs(records)

        inserted = benchmark.pedantic(insert_records, setup=fresh_backend, rounds=5)
        for backend in backends:
            backend.close()
        assert inserted == 10_000


class TestEndToEndThroughput:
    """Benchmark a full run: read, parse and write one file."""

    def test_full_run(self, benchmark, log_file_generator, db_factory):
        path = log_file_generator(10_000)
        ingestor = BatchIngestor(db_factory)

        summary = benchmark.pedantic(ingestor.run, args=(path,), rounds=3, iterations=1)
        assert summary.accepted == 10_000

    def test_full_run_gzip(self, benchmark, log_file_generator, db_factory):
        path = log_file_generator(10_000, compressed=True)
        ingestor = BatchIngestor(db_factory)

        summary = benchmark.pedantic(ingestor.run, args=(path,), rounds=3, iterations=1)
        assert summary.accepted == 10_000

    def test_full_run_parallel_parse(self, benchmark, log_file_generator, db_factory):
        path = log_file_generator(10_000)
        ingestor = BatchIngestor(db_factory, settings=IngestionSettings(parse_workers=4))

        summary = benchmark.pedantic(ingestor.run, args=(path,), rounds=3, iterations=1)
        assert summary.accepted == 10_000
