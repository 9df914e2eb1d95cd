"""Tests for the lock coordinator and connector registry."""

import asyncio
from pathlib import Path

import pytest

from sqlshell.connector import Connector, Intent, Registration, Registry, target_key
from sqlshell.locks import SharedLock


class FakeConnection:
    """Records the coordinator hooks it receives."""

    def __init__(self, pid: int):
        self.pid = pid
        self.admitted = False
        self.suspended = False

    def admit(self) -> None:
        self.admitted = True

    def suspend(self) -> None:
        self.suspended = True


async def _drain(connector: Connector) -> None:
    """Run the coordinator until every queued registration is handled."""
    connector._registrations.put_nowait(None)
    await asyncio.wait_for(connector._coordinate(), timeout=1)


@pytest.mark.asyncio
async def test_first_connection_is_admitted():
    connector = Connector(":memory:")
    first = FakeConnection(1)
    connector._registrations.put_nowait(Registration(Intent.JOIN, first))
    await _drain(connector)

    assert first.admitted
    assert not first.suspended
    assert connector.lock is None
    assert connector.high_water == 1


@pytest.mark.asyncio
async def test_second_connection_suspends_first():
    connector = Connector(":memory:")
    first, second = FakeConnection(1), FakeConnection(2)
    connector._registrations.put_nowait(Registration(Intent.JOIN, first))
    connector._registrations.put_nowait(Registration(Intent.JOIN, second))
    await _drain(connector)

    assert first.suspended
    assert not second.admitted
    assert connector.high_water == 2
    assert connector.members == (first, second)


@pytest.mark.asyncio
async def test_lock_requested_only_once():
    connector = Connector(":memory:")
    conns = [FakeConnection(i) for i in range(3)]
    for c in conns:
        connector._registrations.put_nowait(Registration(Intent.JOIN, c))
    await _drain(connector)

    assert [c.suspended for c in conns] == [True, False, False]
    assert connector.high_water == 3


@pytest.mark.asyncio
async def test_reopen_after_close_is_admitted():
    """A lone connection that replaces a closed one runs without a lock."""
    connector = Connector(":memory:")
    first, second = FakeConnection(1), FakeConnection(2)
    connector._registrations.put_nowait(Registration(Intent.JOIN, first))
    connector._registrations.put_nowait(Registration(Intent.LEAVE, first))
    connector._registrations.put_nowait(Registration(Intent.JOIN, second))
    await _drain(connector)

    assert second.admitted
    assert connector.members == (second,)
    assert connector.lock is None


@pytest.mark.asyncio
async def test_joins_after_lock_wait_for_broadcast():
    connector = Connector(":memory:")
    connector.activate_lock()
    late = FakeConnection(9)
    connector._registrations.put_nowait(Registration(Intent.JOIN, late))
    await _drain(connector)

    assert not late.admitted
    assert not late.suspended
    assert connector.lock_ready.is_set()


@pytest.mark.asyncio
async def test_lock_stays_after_members_leave():
    connector = Connector(":memory:")
    first, second = FakeConnection(1), FakeConnection(2)
    connector._registrations.put_nowait(Registration(Intent.JOIN, first))
    connector._registrations.put_nowait(Registration(Intent.JOIN, second))
    await _drain(connector)
    connector.activate_lock()

    connector.leave(first)
    connector.leave(second)
    await _drain(connector)
    assert connector.members == ()
    assert isinstance(connector.lock, SharedLock)


@pytest.mark.asyncio
async def test_activate_lock_is_idempotent():
    connector = Connector(":memory:")
    connector.activate_lock()
    lock = connector.lock
    connector.activate_lock()
    assert connector.lock is lock
    assert connector.lock_ready.is_set()


def test_target_key_resolves_paths(tmp_path):
    path = tmp_path / "a" / ".." / "db.sqlite"
    assert target_key(str(path)) == str((tmp_path / "db.sqlite").resolve())


def test_target_key_keeps_special_names():
    assert target_key(":memory:") == ":memory:"
    assert target_key("") == ""
    assert target_key("file:x.db?mode=ro") == "file:x.db?mode=ro"


def test_registry_shares_connector_per_target(tmp_path):
    registry = Registry()
    a = registry.connector(str(tmp_path / "db.sqlite"))
    b = registry.connector(str(Path(tmp_path) / "." / "db.sqlite"))
    c = registry.connector(str(tmp_path / "other.sqlite"))
    assert a is b
    assert a is not c
