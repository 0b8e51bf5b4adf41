"""Access log ingestion pipeline: parse combined-format logs into SQLite on a schedule."""

__version__ = "0.1.0"
