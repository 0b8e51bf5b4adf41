"""
Ingestion pipeline: reads a log file, parses it and stores the batch.
"""

from .batch_ingestor import BackendFactory, BatchIngestor
from .logging_setup import LOG_FORMAT, setup_logging

__all__ = [
    "BatchIngestor",
    "BackendFactory",
    "setup_logging",
    "LOG_FORMAT",
]
