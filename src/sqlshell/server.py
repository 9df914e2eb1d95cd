"""FastMCP server with lifespan management and tool registration."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP

from sqlshell.config import get_db_path, get_log_level, is_read_only
from sqlshell.connector import Registry
from sqlshell.db.connection import create_connection
from sqlshell.models.options import ShellOptions
from sqlshell.tools.sql_execute import register_sql_execute
from sqlshell.tools.sql_ping import register_sql_ping
from sqlshell.tools.sql_query import register_sql_query


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    """Manage the shell connection lifecycle."""
    # Configure logging to stderr (stdout is MCP stdio transport)
    logging.basicConfig(
        level=getattr(logging, get_log_level()),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)

    registry = Registry(ShellOptions.from_env())
    db_path = get_db_path()
    logger.info("Opening database at %s", db_path)
    db = await create_connection(db_path, registry=registry)

    try:
        yield {"db": db, "registry": registry}
    finally:
        try:
            await db.close()
        finally:
            await registry.close()
        logger.info("Database connection closed")


_INSTRUCTIONS = """\
This server runs SQL against a SQLite database through the sqlite3 shell.

- sql_query: Run a statement and get its rows as a table. Prefer ? \
placeholders with params over inlining values. Add LIMIT for big tables.
- sql_execute: Run DDL/DML for its effect. Pass a list of lists as params \
for a batch, or script=true for several statements at once.
- sql_ping: Check the shell is alive.

Each statement commits on its own; there are no transactions. Errors come \
back as text starting with "Error:" and do not break the connection.
"""


def create_server() -> FastMCP:
    """Create and configure the MCP server with all tools."""
    mcp = FastMCP(
        "sqlshell",
        instructions=_INSTRUCTIONS,
        lifespan=lifespan,
    )

    register_sql_query(mcp)
    register_sql_ping(mcp)

    if not is_read_only():
        register_sql_execute(mcp)

    return mcp
