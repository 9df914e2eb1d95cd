"""Database connection management over the sqlite3 shell."""

import logging
from pathlib import Path

from sqlshell.config import get_db_path
from sqlshell.connector import Registry
from sqlshell.db.backend import Database
from sqlshell.db.shell_backend import ShellBackend
from sqlshell.models.options import ShellOptions

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str | None = None, *, registry: Registry | None = None
) -> Database:
    """Open a shell-backed database connection.

    Connections opened through the same ``registry`` share a lock
    coordinator. Without one, a private registry is created from the
    SQLSHELL_* environment and closed together with the backend.
    """
    owned = None
    if registry is None:
        registry = owned = Registry(ShellOptions.from_env())

    db_path = str(db_path or get_db_path())
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    connection = await registry.connect(db_path)
    db = ShellBackend(connection, registry=owned)
    try:
        await db.execute("PRAGMA foreign_keys=ON")
        # a read-only shell cannot switch the journal mode
        mode = "journal_mode" if registry.options.read_only else "journal_mode=WAL"
        cursor = await db.execute(f"PRAGMA {mode}")
        row = await cursor.fetchone()
    except BaseException:
        await db.close()
        raise
    logger.debug("Opened %s (journal mode %s)", db_path, row[0] if row else "unknown")
    return db
