"""Database adapter over shell-driven connections."""

from sqlshell.db.backend import Cursor, Database, Row
from sqlshell.db.shell_backend import ShellBackend

__all__ = ["Cursor", "Database", "Row", "ShellBackend"]
