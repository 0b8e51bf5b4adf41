"""
Line parsers for access log ingestion.

Provides:
- Tokenizer for bare, bracketed and quoted fields
- NCSA/Apache combined log format parser
- Combined log format serializer

Usage:
    from access_log_pipeline.ingestion.parsers import (
        CombinedLogParser,
        format_line,
        parse_line,
    )

    result = parse_line(line)
    if result.ok:
        print(result.record.status_code)
"""

from .combined_parser import CombinedLogParser, parse_line
from .formatter import format_line, format_lines
from .tokenizer import Token, TokenKind, tokenize

__all__ = [
    # Tokenizer
    "Token",
    "TokenKind",
    "tokenize",
    # Parser
    "CombinedLogParser",
    "parse_line",
    # Serializer
    "format_line",
    "format_lines",
]
