"""sql_query MCP tool: run a read statement and return a table."""

import asyncio
import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from sqlshell.config import get_max_rows, get_query_timeout
from sqlshell.db.backend import Database
from sqlshell.errors import ShellClientError
from sqlshell.tools.formatters import format_table

logger = logging.getLogger(__name__)


async def run_query(db: Database, sql: str, params: list[Any] | None = None) -> str:
    """Run ``sql`` and format its rows; errors come back as text."""
    timeout = get_query_timeout()
    try:
        async with asyncio.timeout(timeout), db.busy:
            cursor = await db.execute(sql, params or [])
            rows = await cursor.fetchall()
    except TimeoutError:
        logger.warning("Query timed out after %ss: %s", timeout, sql)
        return f"Error: query timed out after {timeout:g}s."
    except ShellClientError as exc:
        return f"Error: {exc}"

    return format_table(cursor.columns, rows, get_max_rows())


def register_sql_query(mcp: FastMCP) -> None:
    """Register the sql_query tool with the MCP server."""

    @mcp.tool()
    async def sql_query(
        sql: Annotated[str, Field(description="A single SQLite statement, ? for parameters")],
        params: Annotated[
            list[Any] | None,
            Field(description="Values for the ? placeholders, in order"),
        ] = None,
        ctx: Context | None = None,
    ) -> str:
        """Run a SQL statement against the database and return its rows as a table.

        Use ? placeholders with params rather than inlining values.
        Large results are truncated; add LIMIT for big tables.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        db = ctx.request_context.lifespan_context["db"]
        return await run_query(db, sql, params)
