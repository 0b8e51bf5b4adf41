"""
Scheduled ingestion using APScheduler.

Fires ``BatchIngestor.run(log_path)`` on a fixed interval or a cron
expression. A failed run is logged and the schedule keeps going.
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
    JobEvent,
)
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from ..config.constants import INGESTION_JOB_ID
from ..config.settings import ScheduleSettings
from ..ingestion.base import IngestSummary
from ..ingestion.exceptions import IngestionCancelledError, IngestionError
from ..pipeline.batch_ingestor import BatchIngestor

logger = logging.getLogger(__name__)

# Field order of a seconds-first cron expression ("0/5 * * * * ?")
_SECONDS_CRON_FIELDS = ("second", "minute", "hour", "day", "month", "day_of_week")


def build_trigger(settings: ScheduleSettings) -> BaseTrigger:
    """
    Build the APScheduler trigger for a schedule.

    Args:
        settings: Interval or cron schedule

    Returns:
        CronTrigger when ``settings.cron`` is set, else IntervalTrigger

    Raises:
        ValueError: If the cron expression is invalid
    """
    if settings.cron:
        return parse_cron(settings.cron)
    return IntervalTrigger(seconds=settings.interval_seconds)


def parse_cron(expression: str) -> CronTrigger:
    """
    Parse a 5-field crontab or a 6-field seconds-first cron expression.

    A ``?`` field (no specific value) is read as ``*``. Day-of-week values
    follow APScheduler's numbering (0 = Monday).
    """
    fields = expression.split()
    if len(fields) == 5:
        return CronTrigger.from_crontab(expression)
    if len(fields) == 6:
        values = ["*" if value == "?" else value for value in fields]
        return CronTrigger(**dict(zip(_SECONDS_CRON_FIELDS, values)))
    raise ValueError(
        f"Cron expression must have 5 or 6 fields, got {len(fields)}: '{expression}'"
    )


class IngestionScheduler:
    """
    Runs the batch ingestor on a schedule.

    A single job is registered with ``max_instances=1`` and ``coalesce=True``,
    so a fire that lands while a run is still going is skipped and logged.

    Usage:
        scheduler = IngestionScheduler(ingestor, 'logs/access.log', settings.schedule)
        scheduler.run_now()   # optional immediate run
        scheduler.start()     # blocks until shutdown
    """

    def __init__(
        self,
        ingestor: BatchIngestor,
        log_path: Union[str, Path],
        schedule_settings: Optional[ScheduleSettings] = None,
        scheduler: Optional[BaseScheduler] = None,
    ):
        """
        Initialize the scheduler and register the ingestion job.

        Args:
            ingestor: Ingestor invoked on every fire
            log_path: File ingested on every fire
            schedule_settings: Interval or cron cadence (default: every 5 seconds)
            scheduler: APScheduler instance (default: BlockingScheduler)
        """
        self._ingestor = ingestor
        self.log_path = str(log_path)
        self.settings = schedule_settings or ScheduleSettings()
        self._scheduler = scheduler or BlockingScheduler()
        self._stop_event = threading.Event()
        self.trigger = build_trigger(self.settings)

        self._scheduler.add_listener(
            self._on_job_event,
            EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES | EVENT_JOB_MISSED,
        )
        self.job = self._scheduler.add_job(
            self.ingest_once,
            trigger=self.trigger,
            id=INGESTION_JOB_ID,
            name=f"ingest {self.log_path}",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.settings.misfire_grace_seconds,
            replace_existing=True,
        )

    @property
    def scheduler(self) -> BaseScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def ingest_once(self) -> Optional[IngestSummary]:
        """
        Scheduled job body: one ingestion run.

        Run-level failures are logged and swallowed so the next fire still
        happens.

        Returns:
            IngestSummary, or None if the run failed
        """
        try:
            return self._ingestor.run(self.log_path, cancel_event=self._stop_event)
        except IngestionCancelledError as e:
            logger.info(f"Scheduled ingestion cancelled: {e}")
        except IngestionError as e:
            logger.error(f"Scheduled ingestion of {self.log_path} failed: {e}")
        return None

    def run_now(self) -> IngestSummary:
        """
        Run one ingestion immediately, outside the schedule.

        Raises:
            IngestionError: If the run fails
        """
        logger.info(f"Running immediate ingestion of {self.log_path}")
        return self._ingestor.run(self.log_path, cancel_event=self._stop_event)

    def start(self) -> None:
        """Start firing. Blocks when using a BlockingScheduler."""
        logger.info(f"Scheduling ingestion of {self.log_path} with {self.trigger}")
        self._stop_event.clear()
        self._scheduler.start()

    def shutdown(self, wait: bool = True, cancel_running: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: Wait for a running job to finish
            cancel_running: Ask a running job to stop before its batch write
        """
        if cancel_running:
            self._stop_event.set()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Ingestion scheduler stopped")

    def _on_job_event(self, event: JobEvent) -> None:
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.warning(
                f"Skipped ingestion fire for job '{event.job_id}': "
                f"previous run still in progress"
            )
        elif event.code == EVENT_JOB_MISSED:
            logger.warning(
                f"Missed ingestion fire for job '{event.job_id}' "
                f"scheduled at {event.scheduled_run_time}"
            )
        elif event.code == EVENT_JOB_ERROR:
            logger.error(
                f"Ingestion job '{event.job_id}' raised unexpectedly: {event.exception}"
            )
