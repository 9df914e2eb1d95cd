"""Tests for the MCP server wiring."""

import shutil

import pytest
from fastmcp import Client

from sqlshell.server import create_server

requires_shell = pytest.mark.skipif(
    shutil.which("sqlite3") is None, reason="sqlite3 shell not installed"
)


@pytest.fixture
def server_env(monkeypatch, tmp_path):
    """Point the server at a temporary database."""
    monkeypatch.setenv("SQLSHELL_DB_PATH", str(tmp_path / "server.db"))
    monkeypatch.delenv("SQLSHELL_READ_ONLY", raising=False)
    return monkeypatch


async def _tool_names(server) -> set[str]:
    async with Client(server) as client:
        return {tool.name for tool in await client.list_tools()}


@requires_shell
@pytest.mark.asyncio
async def test_all_tools_registered(server_env):
    assert await _tool_names(create_server()) == {"sql_query", "sql_execute", "sql_ping"}


@requires_shell
@pytest.mark.asyncio
async def test_read_only_omits_execute(server_env):
    server_env.setenv("SQLSHELL_READ_ONLY", "TRUE")
    assert await _tool_names(create_server()) == {"sql_query", "sql_ping"}


@requires_shell
@pytest.mark.asyncio
async def test_tools_share_the_lifespan_database(server_env):
    async with Client(create_server()) as client:
        await client.call_tool("sql_execute", {"sql": "CREATE TABLE t (a)"})
        await client.call_tool(
            "sql_execute", {"sql": "INSERT INTO t VALUES (?)", "params": [[1], [2]]}
        )
        result = await client.call_tool("sql_query", {"sql": "SELECT count(*) AS n FROM t"})
    text = result.content[0].text
    assert text.splitlines()[2].strip() == "2"
