"""Unit tests for ConnectionManager outcome handling."""
from __future__ import annotations

import asyncio

import pytest

from subscriber.app.application.connection_manager import ConnectionManager
from subscriber.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker


@pytest.mark.asyncio
async def test_connect_passes_options_verbatim():
    broker = InMemoryBroker()
    manager = ConnectionManager(broker, {"host": "rabbit", "port": 5673})

    connection = await manager.connect()

    assert manager.connection is connection
    assert connection.options == {"host": "rabbit", "port": 5673}


@pytest.mark.asyncio
async def test_connect_error_propagates_and_leaves_no_connection():
    broker = InMemoryBroker(connect_error=ConnectionRefusedError("refused"))
    manager = ConnectionManager(broker)

    with pytest.raises(ConnectionRefusedError, match="refused"):
        await manager.connect()
    assert manager.connection is None
    assert manager.connected is False


@pytest.mark.asyncio
async def test_guard_returns_result_when_no_error():
    manager = ConnectionManager(InMemoryBroker())
    await manager.connect()

    async def work() -> str:
        return "bound"

    assert await manager.guard(work()) == "bound"


@pytest.mark.asyncio
async def test_guard_raises_first_connection_error_and_cancels_work():
    broker = InMemoryBroker()
    manager = ConnectionManager(broker)
    await manager.connect()
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def never_acknowledged() -> None:
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    guarded = asyncio.ensure_future(manager.guard(never_acknowledged()))
    await started.wait()
    broker.fail(ConnectionResetError("first"))
    broker.fail(ConnectionResetError("second"))

    with pytest.raises(ConnectionResetError, match="first"):
        await guarded
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_error_after_success_does_not_resettle():
    broker = InMemoryBroker()
    manager = ConnectionManager(broker)
    await manager.connect()

    async def work() -> int:
        return 1

    assert await manager.guard(work()) == 1
    broker.fail(ConnectionResetError("late"))
    broker.fail(ConnectionResetError("later"))
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_disconnect_is_idempotent():
    broker = InMemoryBroker()
    manager = ConnectionManager(broker)

    await manager.disconnect()
    connection = await manager.connect()
    await manager.disconnect()
    await manager.disconnect()

    assert connection.is_closed
    assert manager.connection is None
    assert broker.calls.count(("close",)) == 1


@pytest.mark.asyncio
async def test_connect_twice_without_disconnect_is_rejected():
    manager = ConnectionManager(InMemoryBroker())
    await manager.connect()
    with pytest.raises(RuntimeError):
        await manager.connect()
