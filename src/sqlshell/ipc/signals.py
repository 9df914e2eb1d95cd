"""Small asyncio helpers for waiting on one thing or another."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

T = TypeVar("T")


async def race(aw: Awaitable[T], *events: asyncio.Event) -> tuple[bool, T | None]:
    """Await ``aw`` unless one of ``events`` is set first.

    Returns ``(True, result)`` when ``aw`` finished, ``(False, None)`` when
    an event won; ``aw`` is cancelled in that case. A result that is ready
    at the same time as an event is never dropped.
    """
    task = asyncio.ensure_future(aw)
    waiters = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        done, _ = await asyncio.wait([task, *waiters], return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
        if not task.done():
            task.cancel()
    if task in done:
        return True, task.result()
    return False, None


async def wait_any(*events: asyncio.Event) -> asyncio.Event:
    """Wait until any of ``events`` is set and return the first one found set."""
    for event in events:
        if event.is_set():
            return event
    waiters = [asyncio.ensure_future(event.wait()) for event in events]
    try:
        await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for waiter in waiters:
            waiter.cancel()
    return next(event for event in events if event.is_set())


def close_queue(queue: asyncio.Queue[Any], on_dropped: Any = None) -> None:
    """Put the ``None`` end-of-stream sentinel without blocking.

    A single-slot queue whose consumer has stopped may still hold an item;
    it is dropped (and handed to ``on_dropped``) to make room.
    """
    while True:
        try:
            queue.put_nowait(None)
            return
        except asyncio.QueueFull:
            dropped = queue.get_nowait()
            if on_dropped is not None and dropped is not None:
                on_dropped(dropped)
