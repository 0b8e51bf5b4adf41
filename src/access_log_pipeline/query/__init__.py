"""Read side: query stored access logs."""

from .console import QueryConsole, format_entry
from .service import QueryInputError, QueryService, parse_status_code

__all__ = [
    "QueryService",
    "QueryInputError",
    "parse_status_code",
    "QueryConsole",
    "format_entry",
]
