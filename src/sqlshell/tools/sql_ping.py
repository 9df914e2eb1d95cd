"""sql_ping MCP tool: check that the shell is responsive."""

import asyncio
import time

from fastmcp import FastMCP
from fastmcp.server.context import Context

from sqlshell.config import get_query_timeout
from sqlshell.db.shell_backend import ShellBackend
from sqlshell.errors import ShellClientError


async def run_ping(db: ShellBackend) -> str:
    """Round-trip an empty statement and report the latency."""
    started = time.perf_counter()
    try:
        async with asyncio.timeout(get_query_timeout()), db.busy:
            await db.ping()
    except TimeoutError:
        return "Error: shell did not answer in time."
    except ShellClientError as exc:
        return f"Error: {exc}"
    elapsed = (time.perf_counter() - started) * 1000
    lock = "active" if db.connection.connector.lock is not None else "inactive"
    return f"OK: pid {db.connection.pid}, {elapsed:.1f} ms, shared lock {lock}"


def register_sql_ping(mcp: FastMCP) -> None:
    """Register the sql_ping tool with the MCP server."""

    @mcp.tool()
    async def sql_ping(ctx: Context | None = None) -> str:
        """Check that the database shell is alive and responsive."""
        if ctx is None:
            raise RuntimeError("Context not injected")
        return await run_ping(ctx.request_context.lifespan_context["db"])
