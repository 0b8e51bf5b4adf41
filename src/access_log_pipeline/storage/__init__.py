"""
Storage abstraction layer for the access log pipeline.

Provides a unified interface for persisting access log records using SQLite.

Usage:
    from access_log_pipeline.storage import get_backend

    # Get backend from configuration
    backend = get_backend()

    # Or explicitly specify backend
    backend = get_backend('sqlite', db_path='data/access-logs.db')

    # Use as context manager
    with get_backend() as backend:
        backend.initialize()
        rows = backend.fetch_access_logs(status_code=404)
"""

from .base import (
    QueryError,
    SchemaError,
    StorageBackend,
    StorageConnectionError,
    StorageError,
    StorageHealth,
)
from .factory import SUPPORTED_BACKENDS, backend_factory, get_backend

__all__ = [
    # Base classes and exceptions
    "StorageBackend",
    "StorageError",
    "StorageConnectionError",
    "QueryError",
    "SchemaError",
    "StorageHealth",
    # Factory functions
    "get_backend",
    "backend_factory",
    "SUPPORTED_BACKENDS",
]
