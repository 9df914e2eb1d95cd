"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_shell_binary() -> str:
    """Return the sqlite3 shell executable from SQLSHELL_BINARY."""
    return os.environ.get("SQLSHELL_BINARY", "sqlite3")


def get_db_path() -> Path:
    """Return the database file path from SQLSHELL_DB_PATH."""
    raw = os.environ.get("SQLSHELL_DB_PATH", "~/.local/share/sqlshell/data.db")
    return Path(raw).expanduser()


def get_read_size() -> int:
    """Return the shell output read size in bytes from SQLSHELL_READ_SIZE."""
    return int(os.environ.get("SQLSHELL_READ_SIZE", "4096"))


def use_unique_markers() -> bool:
    """Return True if SQLSHELL_UNIQUE_MARKERS is set to TRUE."""
    return os.environ.get("SQLSHELL_UNIQUE_MARKERS", "").upper() == "TRUE"


def get_query_timeout() -> float:
    """Return the per-tool-call timeout in seconds from SQLSHELL_QUERY_TIMEOUT."""
    return float(os.environ.get("SQLSHELL_QUERY_TIMEOUT", "30.0"))


def get_max_rows() -> int:
    """Return the row cap for formatted query output from SQLSHELL_MAX_ROWS."""
    return int(os.environ.get("SQLSHELL_MAX_ROWS", "200"))


def is_read_only() -> bool:
    """Return True if SQLSHELL_READ_ONLY is set to TRUE."""
    return os.environ.get("SQLSHELL_READ_ONLY", "").upper() == "TRUE"


def get_log_level() -> str:
    """Return the logging level from SQLSHELL_LOG_LEVEL."""
    return os.environ.get("SQLSHELL_LOG_LEVEL", "WARNING")
