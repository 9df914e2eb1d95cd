"""Quick check that the sqlite3 shell is installed and answers statements."""

import asyncio
import sys

from sqlshell.config import get_shell_binary
from sqlshell.connector import Registry
from sqlshell.errors import ShellClientError
from sqlshell.models.options import ShellOptions


async def _check() -> str:
    registry = Registry(ShellOptions.from_env())
    conn = await registry.connect(":memory:")
    try:
        rows = await conn.query("SELECT sqlite_version()")
        row = await rows.fetchone()
    finally:
        await conn.close()
        await registry.close()
    return row[0] if row else "unknown"


def main() -> None:
    """Check that the configured shell starts and runs a query."""
    binary = get_shell_binary()
    print(f"Checking sqlite3 shell {binary}...")

    try:
        version = asyncio.run(_check())
        print(f"  SQLite {version} is available")
    except ShellClientError as e:
        print(f"  Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
