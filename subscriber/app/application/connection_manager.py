"""
Connection manager: owns the broker connection of one subscription.

Outcome model:
  connect() either raises (error before ready) or returns a usable connection.
  After that the first connection error settles a one-shot failure future; guard()
  races setup work against it so the caller observes exactly one outcome.
  Later errors are logged and ignored. There is no reconnection.
  An error after subscribe() succeeded does not fail a pending receive_message();
  the host's own deadline covers that case.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Mapping, TypeVar

from loguru import logger

from subscriber.app.core import SERVICE_NAME
from subscriber.app.ports.broker import BrokerConnection, BrokerConnector

T = TypeVar("T")


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class ConnectionManager:
    def __init__(self, connector: BrokerConnector, options: Mapping[str, Any] | None = None) -> None:
        self._connector = connector
        self._options: dict[str, Any] = dict(options or {})
        self._connection: BrokerConnection | None = None
        self._failure: asyncio.Future[None] | None = None

    @property
    def connection(self) -> BrokerConnection | None:
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> BrokerConnection:
        if self._connection is not None:
            raise RuntimeError("connection already open")
        _log("amqp_connecting")
        try:
            connection = await self._connector.connect(self._options)
        except Exception as e:
            logger.warning("amqp connect failed: {}", e)
            raise
        self._failure = asyncio.get_running_loop().create_future()
        # Consume the exception if nobody is guarding at the time it arrives.
        self._failure.add_done_callback(_retrieve_exception)
        connection.add_error_callback(self._on_connection_error)
        self._connection = connection
        _log("amqp_connected")
        return connection

    def _on_connection_error(self, exc: BaseException) -> None:
        failure = self._failure
        if failure is None or failure.done():
            logger.warning("amqp connection error after outcome was settled: {}", exc)
            return
        _log("amqp_connection_error", error=str(exc))
        failure.set_exception(exc)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the connection faults first; then raise that fault."""
        if self._failure is None:
            raise RuntimeError("not connected")
        task = asyncio.ensure_future(awaitable)
        failure = self._failure
        try:
            await asyncio.wait({task, failure}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        if task.done():
            return task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.warning("setup step failed while connection was failing: {}", e)
        failure.result()
        raise RuntimeError("connection failure future settled without an error")

    async def disconnect(self) -> None:
        connection = self._connection
        if connection is None:
            return
        self._connection = None
        self._failure = None
        try:
            if not connection.is_closed:
                await connection.close()
        except Exception as e:
            logger.warning("amqp connection close failed: {}", e)
        _log("amqp_disconnected")


def _retrieve_exception(future: asyncio.Future[None]) -> None:
    if not future.cancelled():
        future.exception()
