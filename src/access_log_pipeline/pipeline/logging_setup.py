"""Logging configuration shared by the CLI and scripts."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# APScheduler logs every job execution at INFO
_NOISY_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Configure root logging for command-line entry points.

    Args:
        level: Root log level. Below INFO, APScheduler's own loggers are
               left at the same level; otherwise they are raised to WARNING.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    scheduler_level = level if level < logging.INFO else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(scheduler_level)
