"""Exception hierarchy for the shell-backed client."""

from __future__ import annotations

from enum import StrEnum


class ShellClientError(Exception):
    """Base class for every error raised by sqlshell."""


class SpawnError(ShellClientError):
    """The sqlite3 shell process could not be started."""


class ProcessExited(ShellClientError):
    """The shell process ended while its connection was still open."""

    def __init__(self, returncode: int | None) -> None:
        """Initialize with the process exit status."""
        super().__init__(f"shell process exited unexpectedly (status {returncode})")
        self.returncode = returncode


class ConnectionUnusable(ShellClientError):
    """The connection's lifetime is over; open a new one."""


class ConnectionFailure(ShellClientError):
    """Raised by close() when the connection ended on a terminal error."""


class UnexpectedTermination(ShellClientError):
    """The connection died while a result was still being decoded."""


class ResultsDiscarded(ShellClientError):
    """Unread rows were dropped because another statement was started."""


class BindError(ShellClientError):
    """Parameters could not be bound into the statement text."""


class NotSupportedError(ShellClientError):
    """The operation has no equivalent when driving the shell."""


class ErrorKind(StrEnum):
    """Which of the shell's error prefixes produced a ShellError."""

    PARSE = "Parse error"
    RUNTIME = "Runtime error"
    GENERIC = "Error"


class ShellError(ShellClientError):
    """An error reported by the shell for one statement.

    Only the statement that produced it fails; the connection stays usable.
    """

    def __init__(self, kind: ErrorKind, message: str) -> None:
        """Initialize with the error prefix kind and the full error line."""
        super().__init__(message)
        self.kind = kind
        self.message = message


class DecodeError(ShellClientError):
    """The shell output did not match the expected token stream."""

    def __init__(self, reason: str, buffer: bytes, offset: int) -> None:
        """Initialize with a reason, the raw buffer and the offending offset."""
        self.reason = reason
        self.buffer = bytes(buffer)
        self.offset = offset
        super().__init__(str(self))

    @property
    def byte(self) -> int | None:
        """The offending byte, or None if the offset is past the buffer."""
        if 0 <= self.offset < len(self.buffer):
            return self.buffer[self.offset]
        return None

    def __str__(self) -> str:
        """Format: reason: index N(char 'c') of M in: "buffer"."""
        char = "?" if self.byte is None else chr(self.byte)
        text = self.buffer.decode("utf-8", errors="replace")
        return (
            f"{self.reason}: index {self.offset}(char {char!r}) "
            f"of {len(self.buffer)} in: {text!r}"
        )
