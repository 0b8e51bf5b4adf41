"""
Retry handling with exponential backoff for storage writes.

Provides:
- Exponential backoff with jitter
- Configurable retry limits
- Error classification (SQLite lock contention is transient,
  constraint violations are permanent)
"""

import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors for retry decisions."""

    TRANSIENT = "transient"  # Retry after backoff
    PERMANENT = "permanent"  # Do not retry
    UNKNOWN = "unknown"  # Retry with caution


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_factor: float = 0.1

    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay before next retry attempt.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds
        """
        delay = min(
            self.base_delay_seconds * (self.exponential_base**attempt),
            self.max_delay_seconds,
        )

        if self.jitter:
            jitter_range = delay * self.jitter_factor
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)


@dataclass
class RetryResult:
    """Result of a retry operation."""

    success: bool
    result: Any = None
    attempts: int = 0
    total_delay_seconds: float = 0.0
    last_error: Optional[Exception] = None
    errors: list[dict] = field(default_factory=list)


class ErrorClassifier:
    """
    Classifies errors to determine retry behavior.

    Maps exception types and error messages to retry categories.
    """

    # Lock contention and I/O hiccups
    TRANSIENT_PATTERNS = [
        "database is locked",
        "database table is locked",
        "busy",
        "timeout",
        "disk i/o error",
        "unable to open database",
    ]

    # Data or schema problems that will fail again
    PERMANENT_PATTERNS = [
        "constraint",
        "integrity",
        "no such table",
        "no such column",
        "syntax error",
        "datatype mismatch",
        "readonly",
        "read-only",
    ]

    @classmethod
    def classify(cls, error: Exception) -> ErrorCategory:
        """
        Classify an error to determine retry behavior.

        Args:
            error: The exception to classify

        Returns:
            ErrorCategory for retry decisions
        """
        error_str = str(error).lower()
        error_type = type(error).__name__.lower()

        for pattern in cls.PERMANENT_PATTERNS:
            if pattern in error_str or pattern in error_type:
                return ErrorCategory.PERMANENT

        for pattern in cls.TRANSIENT_PATTERNS:
            if pattern in error_str or pattern in error_type:
                return ErrorCategory.TRANSIENT

        if isinstance(error, (TimeoutError, ConnectionError)):
            return ErrorCategory.TRANSIENT

        if isinstance(error, (ValueError, TypeError, KeyError)):
            return ErrorCategory.PERMANENT

        return ErrorCategory.UNKNOWN


class RetryManager:
    """
    Manages retry logic for operations with exponential backoff.
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    def execute_with_retry(
        self,
        func: Callable[..., Any],
        *args,
        retry_on: Optional[list[ErrorCategory]] = None,
        stop_event: Optional[threading.Event] = None,
        **kwargs,
    ) -> RetryResult:
        """
        Execute a function with retry logic.

        Args:
            func: Function to execute
            *args: Positional arguments for the function
            retry_on: Error categories to retry on (default: transient, unknown)
            stop_event: When set, no further attempt is made and backoff
                        sleeps end early
            **kwargs: Keyword arguments for the function

        Returns:
            RetryResult with outcome and statistics
        """
        if retry_on is None:
            retry_on = [ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN]

        result = RetryResult(success=False)

        for attempt in range(self.config.max_retries + 1):
            if attempt > 0 and stop_event is not None and stop_event.is_set():
                logger.info("Stop requested, abandoning retries")
                break

            result.attempts = attempt + 1

            try:
                result.result = func(*args, **kwargs)
                result.success = True
                logger.debug(f"Operation succeeded on attempt {attempt + 1}")
                break

            except Exception as e:
                category = ErrorClassifier.classify(e)
                result.errors.append(
                    {
                        "attempt": attempt + 1,
                        "error": str(e),
                        "error_type": type(e).__name__,
                        "category": category.value,
                    }
                )
                result.last_error = e

                logger.warning(
                    f"Attempt {attempt + 1} failed: {e} (category: {category.value})"
                )

                if category not in retry_on:
                    logger.info(f"Not retrying: error category {category.value}")
                    break

                if attempt >= self.config.max_retries:
                    if self.config.max_retries:
                        logger.error(
                            f"Max retries ({self.config.max_retries}) exhausted"
                        )
                    break

                delay = self.config.calculate_delay(attempt)
                logger.info(f"Retrying in {delay:.2f} seconds...")
                result.total_delay_seconds += delay
                if stop_event is not None:
                    stop_event.wait(delay)
                else:
                    time.sleep(delay)

        return result

