"""
Storage backend construction.

The ingestor and query service never hold a long-lived connection; they
receive a zero-argument ``backend_factory`` and open one backend per run or
query, closing it when the ``with`` block ends.
"""

import logging
from functools import partial
from pathlib import Path
from typing import Callable, Optional

from .base import StorageBackend, StorageError

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("sqlite",)


def get_backend(backend_type: Optional[str] = None, **kwargs) -> StorageBackend:
    """
    Create one storage backend.

    Args:
        backend_type: 'sqlite'; None reads ``storage.backend`` from settings
        **kwargs: Constructor arguments (SQLite: db_path). When omitted the
                  database path comes from settings.

    Returns:
        Unopened StorageBackend (call initialize() before use)

    Raises:
        StorageError: Unknown backend type, or the backend could not be built
    """
    if backend_type is None or not kwargs:
        from ..config.settings import get_settings

        settings = get_settings()
        backend_type = backend_type or settings.storage_backend
        kwargs = kwargs or {"db_path": Path(settings.sqlite_db_path)}

    backend_type = backend_type.lower()
    if backend_type not in SUPPORTED_BACKENDS:
        raise StorageError(
            f"Unknown storage backend: '{backend_type}'. "
            f"Available backends: {', '.join(SUPPORTED_BACKENDS)}"
        )

    from .sqlite_backend import SQLiteBackend

    try:
        backend = SQLiteBackend(**kwargs)
    except (OSError, TypeError, ValueError) as e:
        raise StorageError(f"Failed to create {backend_type} backend: {e}") from e
    logger.debug(f"Created {backend_type} storage backend at {backend.db_path}")
    return backend


def backend_factory(
    backend_type: str = "sqlite", **kwargs
) -> Callable[[], StorageBackend]:
    """
    Bind backend arguments into a zero-argument callable.

    Each call returns a fresh backend, so concurrent runs and queries never
    share a connection.

    Example:
        factory = backend_factory('sqlite', db_path='data/access-logs.db')
        with factory() as backend:
            backend.initialize()
    """
    return partial(get_backend, backend_type, **kwargs)
