"""Shell process settings."""

import os

from pydantic import BaseModel, Field

from sqlshell.config import get_read_size, get_shell_binary, is_read_only, use_unique_markers


class ShellOptions(BaseModel):
    """How a connection starts and talks to the sqlite3 shell."""

    binary: str = "sqlite3"
    flags: list[str] = Field(default_factory=lambda: ["-init", os.devnull, "-quote", "-header"])
    read_size: int = Field(default=4096, ge=64)
    unique_markers: bool = False
    read_only: bool = False

    @classmethod
    def from_env(cls) -> "ShellOptions":
        """Build options from SQLSHELL_* environment variables."""
        return cls(
            binary=get_shell_binary(),
            read_size=get_read_size(),
            unique_markers=use_unique_markers(),
            read_only=is_read_only(),
        )

    def command(self, target: str) -> list[str]:
        """Return the argv that opens ``target`` in the shell."""
        flags = [*self.flags, "-readonly"] if self.read_only else self.flags
        return [self.binary, *flags, target]
