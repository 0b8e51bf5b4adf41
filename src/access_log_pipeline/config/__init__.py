"""Configuration module."""

from .constants import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_LOG_FILE_PATH,
    DEFAULT_SQLITE_DB_PATH,
    TABLE_ACCESS_LOGS,
    MONTH_ABBREVIATIONS,
    NUMERIC_TIMESTAMP_FORMAT,
)
from .settings import (
    IngestionSettings,
    ScheduleSettings,
    Settings,
    clear_settings_cache,
    get_settings,
    load_yaml_config,
)

__all__ = [
    # Defaults
    "DEFAULT_INTERVAL_SECONDS",
    "DEFAULT_LOG_FILE_PATH",
    "DEFAULT_SQLITE_DB_PATH",
    "TABLE_ACCESS_LOGS",
    "MONTH_ABBREVIATIONS",
    "NUMERIC_TIMESTAMP_FORMAT",
    # Settings
    "Settings",
    "ScheduleSettings",
    "IngestionSettings",
    "get_settings",
    "clear_settings_cache",
    "load_yaml_config",
]
