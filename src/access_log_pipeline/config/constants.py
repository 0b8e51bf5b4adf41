"""
Constants for access log parsing, storage and scheduling.
"""

# =============================================================================
# Combined Log Format
# =============================================================================

# Bracketed timestamps look like 10/Oct/2023:13:55:36 -0700. The month name is
# mapped through MONTH_ABBREVIATIONS, so strptime only sees a numeric month
# and the result does not depend on the process locale.
NUMERIC_TIMESTAMP_FORMAT = "%d/%m/%Y:%H:%M:%S %z"

# Strict shape check applied before strptime (strptime accepts 1-digit days)
TIMESTAMP_PATTERN = r"^\d{2}/(?P<month>[A-Z][a-z]{2})/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4}$"

# English month abbreviations as written by web servers
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)

# Placeholder used by web servers for an absent field
PLACEHOLDER = "-"

# Valid HTTP status code range (inclusive)
MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599

# Largest byte count SQLite can store in an INTEGER column
MAX_BYTES_SENT = 2**63 - 1

# =============================================================================
# Defaults
# =============================================================================

DEFAULT_LOG_FILE_PATH = "logs/access.log"
DEFAULT_SQLITE_DB_PATH = "data/access-logs.db"

# Seconds between scheduled ingestion runs
DEFAULT_INTERVAL_SECONDS = 5

# Scheduler job identifier
INGESTION_JOB_ID = "access-log-ingestion"

# SQLite table names
TABLE_ACCESS_LOGS = "access_logs"
