"""Shared test fixtures."""

import pytest
import pytest_asyncio

from sqlshell.connector import Registry
from sqlshell.db.connection import create_connection
from sqlshell.models.options import ShellOptions


@pytest.fixture
def db_file(tmp_path):
    """Path of a fresh database file."""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def registry():
    """Registry with default shell options, closed after the test."""
    reg = Registry(ShellOptions())
    yield reg
    await reg.close()


@pytest_asyncio.fixture
async def conn(registry, db_file):
    """A single connection to a file database."""
    connection = await registry.connect(str(db_file))
    yield connection
    if not connection.closed:
        await connection.close()


@pytest_asyncio.fixture
async def db(registry, db_file):
    """Database adapter over a file database."""
    backend = await create_connection(db_file, registry=registry)
    yield backend
    if not backend.connection.closed:
        await backend.close()
