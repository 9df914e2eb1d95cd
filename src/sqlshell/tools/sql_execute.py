"""sql_execute MCP tool: run statements for their effect."""

import asyncio
import logging
from typing import Annotated, Any

from fastmcp import FastMCP
from fastmcp.server.context import Context
from pydantic import Field

from sqlshell.config import get_query_timeout
from sqlshell.db.backend import Database
from sqlshell.errors import ShellClientError

logger = logging.getLogger(__name__)

_MAX_BATCH = 500


async def run_execute(
    db: Database, sql: str, params: list[Any] | None = None, *, script: bool = False
) -> str:
    """Run ``sql`` once (or as a script) and report the outcome as text."""
    timeout = get_query_timeout()
    try:
        async with asyncio.timeout(timeout), db.busy:
            if script:
                await db.executescript(sql)
            else:
                cursor = await db.execute(sql, params or [])
                # unread RETURNING rows would block the next statement
                await cursor.fetchall()
            await db.commit()
    except TimeoutError:
        logger.warning("Statement timed out after %ss: %s", timeout, sql)
        return f"Error: statement timed out after {timeout:g}s."
    except ShellClientError as exc:
        return f"Error: {exc}"
    return "OK"


async def run_execute_many(db: Database, sql: str, params_seq: list[list[Any]]) -> str:
    """Run ``sql`` once per parameter list."""
    if len(params_seq) > _MAX_BATCH:
        return f"Error: Maximum {_MAX_BATCH} parameter sets per request (got {len(params_seq)})."
    try:
        async with asyncio.timeout(get_query_timeout()), db.busy:
            await db.executemany(sql, list(params_seq))
    except TimeoutError:
        return "Error: batch timed out; some statements may have run."
    except ShellClientError as exc:
        return f"Error: {exc}"
    return f"OK ({len(params_seq)} statements)"


def register_sql_execute(mcp: FastMCP) -> None:
    """Register the sql_execute tool with the MCP server."""

    @mcp.tool()
    async def sql_execute(
        sql: Annotated[str, Field(description="SQL to run for its effect (DDL or DML)")],
        params: Annotated[
            list[Any] | None,
            Field(description="Values for ? placeholders, or a list of value lists for a batch"),
        ] = None,
        script: Annotated[
            bool, Field(description="Run sql as a multi-statement script (no params)")
        ] = False,
        ctx: Context | None = None,
    ) -> str:
        """Run INSERT/UPDATE/DELETE/DDL statements.

        Pass a list of lists as params to run the statement once per set.
        Use script=true for several semicolon-separated statements.
        """
        if ctx is None:
            raise RuntimeError("Context not injected")
        db = ctx.request_context.lifespan_context["db"]

        if script:
            if params:
                return "Error: script mode does not take params."
            return await run_execute(db, sql, script=True)
        if params and all(isinstance(p, list) for p in params):
            return await run_execute_many(db, sql, params)
        return await run_execute(db, sql, params)
