"""Scheduled ingestion."""

from .scheduler import IngestionScheduler, build_trigger, parse_cron

__all__ = [
    "IngestionScheduler",
    "build_trigger",
    "parse_cron",
]
