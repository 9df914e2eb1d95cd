"""Asyncio database client that drives the sqlite3 shell as a subprocess."""

from sqlshell.connection import Connection
from sqlshell.connector import Connector, Registry
from sqlshell.errors import (
    BindError,
    ConnectionFailure,
    ConnectionUnusable,
    DecodeError,
    ErrorKind,
    NotSupportedError,
    ProcessExited,
    ResultsDiscarded,
    ShellClientError,
    ShellError,
    SpawnError,
    UnexpectedTermination,
)
from sqlshell.locks import LockMode, SharedLock
from sqlshell.models.options import ShellOptions
from sqlshell.rows import Result, Row, Rows
from sqlshell.statement import Statement

__all__ = [
    "BindError",
    "Connection",
    "ConnectionFailure",
    "ConnectionUnusable",
    "Connector",
    "DecodeError",
    "ErrorKind",
    "LockMode",
    "NotSupportedError",
    "ProcessExited",
    "Registry",
    "Result",
    "ResultsDiscarded",
    "Row",
    "Rows",
    "SharedLock",
    "ShellClientError",
    "ShellError",
    "ShellOptions",
    "SpawnError",
    "Statement",
    "UnexpectedTermination",
]
