"""Broker port: connect, declare, bind, consume, disconnect.

The subscription core depends on these protocols only; aio-pika and the in-memory
broker implement them in infrastructure.
"""
from __future__ import annotations

from typing import Any, Awaitable, Callable, Mapping, Protocol, runtime_checkable

from subscriber.app.domain.models import ReceivedMessage

MessageCallback = Callable[[ReceivedMessage], Awaitable[None]]
ErrorCallback = Callable[[BaseException], None]


@runtime_checkable
class BrokerQueue(Protocol):
    @property
    def name(self) -> str: ...

    async def consume(self, callback: MessageCallback) -> str:
        """Register the delivery callback; returns the consumer tag."""
        ...

    async def bind(self, exchange: str, routing_key: str) -> None:
        """Bind to exchange/routing key; returns once the broker acknowledged."""
        ...


@runtime_checkable
class BrokerConnection(Protocol):
    @property
    def is_closed(self) -> bool: ...

    async def declare_queue(self, name: str, options: Mapping[str, Any]) -> BrokerQueue: ...

    def add_error_callback(self, callback: ErrorCallback) -> None:
        """Call ``callback`` when the connection faults after it was established."""
        ...

    async def close(self) -> None: ...


class BrokerConnector(Protocol):
    async def connect(self, options: Mapping[str, Any]) -> BrokerConnection:
        """Open a connection; raise the client's error when the broker cannot be reached."""
        ...
