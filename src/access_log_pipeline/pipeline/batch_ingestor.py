"""
Batch ingestion of access log files.

One run reads a whole file, parses every line independently and writes the
successfully parsed records to storage in a single transaction. A bad line
is recorded in the run summary and never aborts the batch; a problem with
the file or the store aborts the run and nothing is committed.
"""

import logging
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from ..config.settings import IngestionSettings
from ..ingestion.base import IngestSummary, LogRecord, ParseResult, RejectedLine
from ..ingestion.exceptions import (
    FileUnavailableError,
    IngestionCancelledError,
    StoreWriteFailedError,
)
from ..ingestion.file_utils import read_lines
from ..ingestion.parsers import CombinedLogParser
from ..ingestion.validation import format_file_size, validate_file_path
from ..monitoring.retry_handler import ErrorCategory, RetryConfig, RetryManager
from ..storage import StorageBackend, StorageError, get_backend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], StorageBackend]


class BatchIngestor:
    """
    Ingests one access log file per run.

    Runs are serialized: a second ``run`` call waits for the first to
    finish, polling its cancel event while it waits.

    Usage:
        ingestor = BatchIngestor(backend_factory('sqlite', db_path='data/logs.db'))
        summary = ingestor.run('logs/access.log')
        print(summary.accepted, summary.rejected_count)
    """

    def __init__(
        self,
        backend_factory: Optional[BackendFactory] = None,
        parser: Optional[CombinedLogParser] = None,
        settings: Optional[IngestionSettings] = None,
        lock_poll_seconds: float = 0.1,
    ):
        """
        Initialize the ingestor.

        Args:
            backend_factory: Zero-argument callable returning a fresh
                             StorageBackend (default: backend from settings)
            parser: Line parser (default: CombinedLogParser)
            settings: Parse workers, write retries and file encoding
            lock_poll_seconds: How often a waiting run checks its cancel event
        """
        self._backend_factory = backend_factory or get_backend
        self._parser = parser or CombinedLogParser()
        self.settings = settings or IngestionSettings()
        self._lock_poll_seconds = lock_poll_seconds
        self._run_lock = threading.Lock()
        self._retry_manager = RetryManager(
            RetryConfig(
                max_retries=self.settings.store_write_retries,
                base_delay_seconds=self.settings.retry_base_delay_seconds,
            )
        )

    @property
    def is_running(self) -> bool:
        """True while a run holds the run lock."""
        return self._run_lock.locked()

    def run(
        self,
        file_path: Union[str, Path],
        cancel_event: Optional[threading.Event] = None,
        validate_only: bool = False,
    ) -> IngestSummary:
        """
        Ingest one file.

        Args:
            file_path: Log file to read (plain text or gzip)
            cancel_event: When set before the batch write, the run stops and
                          nothing is committed
            validate_only: Parse and report without writing to storage

        Returns:
            IngestSummary for the run

        Raises:
            FileUnavailableError: File missing, unreadable or not decodable
            StoreWriteFailedError: Storage rejected the batch
            IngestionCancelledError: cancel_event was set before the write
        """
        path = Path(file_path)
        self._acquire_run_lock(path, cancel_event)
        try:
            return self._run_locked(path, cancel_event, validate_only)
        finally:
            self._run_lock.release()

    def _acquire_run_lock(
        self, path: Path, cancel_event: Optional[threading.Event]
    ) -> None:
        if self._run_lock.acquire(blocking=False):
            return

        logger.info(f"Ingestion already in progress, waiting to process {path}")
        while not self._run_lock.acquire(timeout=self._lock_poll_seconds):
            if cancel_event is not None and cancel_event.is_set():
                raise IngestionCancelledError(
                    f"Ingestion of {path} cancelled while waiting for a running batch"
                )

    def _run_locked(
        self,
        path: Path,
        cancel_event: Optional[threading.Event],
        validate_only: bool,
    ) -> IngestSummary:
        summary = IngestSummary(file_path=str(path))
        logger.info(f"Starting ingestion of {path}")

        lines = self._read_file(path)
        summary.lines_read = len(lines)

        records = self._parse_lines(path, lines, summary)

        if validate_only:
            summary.completed_at = datetime.now().astimezone()
            logger.info(
                f"Validated {path}: {summary.accepted} valid, "
                f"{summary.rejected_count} rejected, "
                f"{summary.blank_lines} blank (nothing written)"
            )
            return summary

        self._check_cancelled(path, cancel_event)
        self._write_batch(records, cancel_event)

        summary.committed = True
        summary.completed_at = datetime.now().astimezone()
        logger.info(
            f"Ingested {path}: {summary.accepted} accepted, "
            f"{summary.rejected_count} rejected, {summary.blank_lines} blank "
            f"in {summary.duration_seconds:.2f}s"
        )
        return summary

    def _read_file(self, path: Path) -> list[str]:
        """Read every line of the file or raise FileUnavailableError."""
        validation = validate_file_path(path)
        if not validation.is_valid:
            raise FileUnavailableError(str(path), validation.error_message)

        for warning in validation.warnings:
            logger.warning(warning)
        if validation.file_size_bytes is not None:
            logger.debug(
                f"Reading {path} ({format_file_size(validation.file_size_bytes)})"
            )

        try:
            return read_lines(path, encoding=self.settings.encoding, errors="replace")
        except (OSError, EOFError, LookupError, zlib.error) as e:
            raise FileUnavailableError(str(path), str(e)) from e

    def _parse_lines(
        self, path: Path, lines: list[str], summary: IngestSummary
    ) -> list[LogRecord]:
        """Parse non-blank lines in file order, filling the summary."""
        numbered = []
        for line_number, line in enumerate(lines, start=1):
            if line.strip():
                numbered.append((line_number, line))
            else:
                summary.blank_lines += 1

        results = self._parse_all([line for _, line in numbered])

        records: list[LogRecord] = []
        for (line_number, _), result in zip(numbered, results):
            if result.ok:
                records.append(result.record)
                continue
            rejected = RejectedLine(
                line_number=line_number,
                kind=result.error.kind,
                message=result.error.message,
            )
            summary.rejected.append(rejected)
            logger.warning(
                f"Rejected line {line_number} of {path}: "
                f"{rejected.kind.value}: {rejected.message}"
            )

        summary.accepted = len(records)
        return records

    def _parse_all(self, lines: list[str]) -> list[ParseResult]:
        workers = self.settings.parse_workers
        if workers <= 1 or len(lines) < 2:
            return [self._parser.parse(line) for line in lines]

        # map() yields results in submission order
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self._parser.parse, lines))

    @staticmethod
    def _check_cancelled(
        path: Path, cancel_event: Optional[threading.Event]
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelledError(
                f"Ingestion of {path} cancelled before the batch was written"
            )

    def _write_batch(
        self,
        records: list[LogRecord],
        cancel_event: Optional[threading.Event],
    ) -> int:
        """Write the whole batch in one transaction, retrying transient errors."""
        try:
            with self._backend_factory() as backend:
                backend.initialize()
                result = self._retry_manager.execute_with_retry(
                    backend.insert_access_logs,
                    records,
                    retry_on=[ErrorCategory.TRANSIENT],
                    stop_event=cancel_event,
                )
        except StorageError as e:
            raise StoreWriteFailedError(
                f"Storage unavailable: {e}", record_count=len(records)
            ) from e

        if result.success:
            return result.result

        if cancel_event is not None and cancel_event.is_set():
            raise IngestionCancelledError(
                "Ingestion cancelled while retrying the batch write"
            ) from result.last_error

        raise StoreWriteFailedError(
            f"Batch write failed: {result.last_error}",
            record_count=len(records),
            attempts=result.attempts,
        ) from result.last_error
