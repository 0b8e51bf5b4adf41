"""
Application settings and configuration management.

Supports loading from:
1. YAML configuration file (config.yaml)
2. Environment variables (fallback)
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import (
    DEFAULT_INTERVAL_SECONDS,
    DEFAULT_LOG_FILE_PATH,
    DEFAULT_SQLITE_DB_PATH,
)

logger = logging.getLogger(__name__)


def _safe_int(key: str, default: int) -> int:
    """Safely parse int from env var, using default on error."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


# =============================================================================
# Schedule Settings
# =============================================================================


@dataclass
class ScheduleSettings:
    """
    Cadence of the scheduled ingestion job.

    Either a fixed interval in seconds or a cron expression. When ``cron`` is
    set it takes precedence over ``interval_seconds``. Cron expressions are
    5-field crontab (minute precision) or 6-field with a leading seconds
    field, e.g. ``"0/5 * * * * ?"``.
    """

    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    cron: Optional[str] = None
    misfire_grace_seconds: int = 30

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.cron is None and self.interval_seconds < 1:
            errors.append(
                f"schedule.interval_seconds must be >= 1, got {self.interval_seconds}"
            )
        if self.cron is not None and len(self.cron.split()) not in (5, 6):
            errors.append(
                f"schedule.cron must have 5 or 6 fields, got '{self.cron}'"
            )
        if self.misfire_grace_seconds < 1:
            errors.append(
                f"schedule.misfire_grace_seconds must be >= 1, "
                f"got {self.misfire_grace_seconds}"
            )

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "interval_seconds": self.interval_seconds,
            "cron": self.cron,
            "misfire_grace_seconds": self.misfire_grace_seconds,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "ScheduleSettings":
        """Create from configuration dictionary."""
        return cls(
            interval_seconds=config.get("interval_seconds", DEFAULT_INTERVAL_SECONDS),
            cron=config.get("cron") or None,
            misfire_grace_seconds=config.get("misfire_grace_seconds", 30),
        )

    @classmethod
    def from_env(cls) -> "ScheduleSettings":
        """Create from environment variables."""
        return cls(
            interval_seconds=_safe_int(
                "INGEST_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS
            ),
            cron=os.environ.get("INGEST_CRON") or None,
            misfire_grace_seconds=_safe_int("INGEST_MISFIRE_GRACE_SECONDS", 30),
        )


# =============================================================================
# Ingestion Settings
# =============================================================================


@dataclass
class IngestionSettings:
    """Tuning for a single ingestion run."""

    # Parser threads; 1 parses inline
    parse_workers: int = 1
    # Extra attempts for a failed batch write (0 = no retry)
    store_write_retries: int = 0
    retry_base_delay_seconds: float = 0.5
    encoding: str = "utf-8"

    def validate(self) -> list[str]:
        """Validate settings values. Returns list of errors."""
        errors = []

        if self.parse_workers < 1:
            errors.append(
                f"ingestion.parse_workers must be >= 1, got {self.parse_workers}"
            )
        if self.store_write_retries < 0:
            errors.append(
                f"ingestion.store_write_retries must be >= 0, "
                f"got {self.store_write_retries}"
            )
        if self.retry_base_delay_seconds < 0:
            errors.append(
                f"ingestion.retry_base_delay_seconds must be >= 0, "
                f"got {self.retry_base_delay_seconds}"
            )

        return errors

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "parse_workers": self.parse_workers,
            "store_write_retries": self.store_write_retries,
            "retry_base_delay_seconds": self.retry_base_delay_seconds,
            "encoding": self.encoding,
        }

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "IngestionSettings":
        """Create from configuration dictionary."""
        return cls(
            parse_workers=config.get("parse_workers", 1),
            store_write_retries=config.get("store_write_retries", 0),
            retry_base_delay_seconds=config.get("retry_base_delay_seconds", 0.5),
            encoding=config.get("encoding", "utf-8"),
        )

    @classmethod
    def from_env(cls) -> "IngestionSettings":
        """Create from environment variables."""
        return cls(
            parse_workers=_safe_int("PARSE_WORKERS", 1),
            store_write_retries=_safe_int("STORE_WRITE_RETRIES", 0),
        )


# =============================================================================
# Main Settings
# =============================================================================


@dataclass
class Settings:
    """Application settings."""

    # Input
    log_file_path: str = DEFAULT_LOG_FILE_PATH

    # Storage Backend Settings
    storage_backend: str = "sqlite"
    sqlite_db_path: str = DEFAULT_SQLITE_DB_PATH

    schedule: ScheduleSettings = field(default_factory=ScheduleSettings)
    ingestion: IngestionSettings = field(default_factory=IngestionSettings)

    def validate(self) -> list[str]:
        """Validate required settings are present. Returns list of errors."""
        errors = []

        if self.storage_backend != "sqlite":
            errors.append("Only SQLite backend is supported in this version")

        if not self.log_file_path:
            errors.append("input.log_file_path is required")

        if not self.sqlite_db_path:
            errors.append("storage.sqlite_db_path is required")

        # Validate nested settings
        errors.extend(self.schedule.validate())
        errors.extend(self.ingestion.validate())

        return errors

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Create Settings from configuration dictionary (e.g., from YAML)."""
        storage = config.get("storage") or {}
        source = config.get("input") or {}

        return cls(
            log_file_path=source.get("log_file_path", DEFAULT_LOG_FILE_PATH),
            storage_backend=storage.get("backend", "sqlite"),
            sqlite_db_path=storage.get("sqlite_db_path", DEFAULT_SQLITE_DB_PATH),
            schedule=ScheduleSettings.from_dict(config.get("schedule") or {}),
            ingestion=IngestionSettings.from_dict(config.get("ingestion") or {}),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables."""
        return cls(
            log_file_path=os.environ.get("ACCESS_LOG_FILE", DEFAULT_LOG_FILE_PATH),
            storage_backend="sqlite",
            sqlite_db_path=os.environ.get("SQLITE_DB_PATH", DEFAULT_SQLITE_DB_PATH),
            schedule=ScheduleSettings.from_env(),
            ingestion=IngestionSettings.from_env(),
        )


# Default config file path
DEFAULT_CONFIG_PATH = Path("config.yaml")


def load_yaml_config(file_path: Path) -> dict[str, Any]:
    """
    Read a YAML configuration file.

    Args:
        file_path: Path to the YAML file

    Returns:
        Parsed configuration (empty dict for an empty file)

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the document is not a mapping
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {file_path} must contain a mapping")
    return config


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Get cached settings instance.

    Loads from the YAML config file if available, otherwise from env vars.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        Settings instance
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if path.exists():
        try:
            return Settings.from_dict(load_yaml_config(path))
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            logger.warning("Falling back to environment variables")

    return Settings.from_env()


def clear_settings_cache() -> None:
    """Clear the cached settings (useful for testing)."""
    get_settings.cache_clear()
