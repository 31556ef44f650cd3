"""In-memory broker for tests and local mode.

Implements the broker port in process: the default exchange routes by queue name,
other exchanges route by exact routing key match. Queues outlive connections,
consumers do not. Records every call so tests can check ordering.
Not a broker: no persistence, no acknowledgements.
"""
from __future__ import annotations

import itertools
from typing import Any, Mapping

from subscriber.app.domain.models import ReceivedMessage
from subscriber.app.ports.broker import ErrorCallback, MessageCallback

DEFAULT_EXCHANGE = ""


class InMemoryQueue:
    """Broker-side queue state shared by every connection that declares it."""

    def __init__(self, name: str, options: Mapping[str, Any]) -> None:
        self.name = name
        self.options = dict(options)
        self.consumers: list[MessageCallback] = []
        self.bindings: list[tuple[str, str]] = []


class InMemoryQueueHandle:
    """A queue as seen through one connection."""

    def __init__(self, connection: InMemoryConnection, queue: InMemoryQueue) -> None:
        self._connection = connection
        self._queue = queue

    @property
    def name(self) -> str:
        return self._queue.name

    @property
    def options(self) -> dict[str, Any]:
        return self._queue.options

    async def consume(self, callback: MessageCallback) -> str:
        self._connection.broker.calls.append(("consume", self.name))
        self._queue.consumers.append(callback)
        self._connection.consumers.append((self._queue, callback))
        return f"ctag-{self.name}-{len(self._queue.consumers)}"

    async def bind(self, exchange: str, routing_key: str) -> None:
        self._connection.broker.calls.append(("bind", self.name, exchange, routing_key))
        if (exchange, routing_key) not in self._queue.bindings:
            self._queue.bindings.append((exchange, routing_key))


class InMemoryConnection:
    def __init__(self, broker: InMemoryBroker, options: Mapping[str, Any]) -> None:
        self.broker = broker
        self.options = dict(options)
        self.consumers: list[tuple[InMemoryQueue, MessageCallback]] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def add_error_callback(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    async def declare_queue(self, name: str, options: Mapping[str, Any]) -> InMemoryQueueHandle:
        if self._closed:
            raise ConnectionError("connection is closed")
        self.broker.calls.append(("declare_queue", name))
        queue = self.broker.queues.get(name)
        if queue is None:
            queue = InMemoryQueue(name, options)
            self.broker.queues[name] = queue
        return InMemoryQueueHandle(self, queue)

    def fail(self, exc: BaseException) -> None:
        for callback in list(self._error_callbacks):
            callback(exc)

    async def close(self) -> None:
        self.broker.calls.append(("close",))
        for queue, callback in self.consumers:
            if callback in queue.consumers:
                queue.consumers.remove(callback)
        self.consumers.clear()
        self._closed = True


class InMemoryBroker:
    """BrokerConnector for tests. ``connect_error`` makes connect raise."""

    def __init__(self, *, connect_error: BaseException | None = None) -> None:
        self.connect_error = connect_error
        self.queues: dict[str, InMemoryQueue] = {}
        self.connections: list[InMemoryConnection] = []
        self.calls: list[tuple[Any, ...]] = []
        self._delivery_tags = itertools.count(1)

    async def connect(self, options: Mapping[str, Any]) -> InMemoryConnection:
        self.calls.append(("connect",))
        if self.connect_error is not None:
            raise self.connect_error
        connection = InMemoryConnection(self, options)
        self.connections.append(connection)
        return connection

    def fail(self, exc: BaseException) -> None:
        """Emit a connection error on every open connection."""
        for connection in self.connections:
            if not connection.is_closed:
                connection.fail(exc)

    def _route(self, exchange: str, routing_key: str) -> list[InMemoryQueue]:
        if exchange == DEFAULT_EXCHANGE:
            queue = self.queues.get(routing_key)
            return [queue] if queue is not None else []
        return [q for q in self.queues.values() if (exchange, routing_key) in q.bindings]

    async def publish(
        self,
        exchange: str,
        routing_key: str,
        payload: Any,
        *,
        headers: Mapping[str, Any] | None = None,
    ) -> int:
        """Deliver to every consumer of every matching queue; returns the number of deliveries."""
        delivered = 0
        for queue in self._route(exchange, routing_key):
            for consumer in list(queue.consumers):
                message = ReceivedMessage(
                    payload=payload,
                    headers=dict(headers or {}),
                    delivery_info={
                        "queue": queue.name,
                        "deliveryTag": next(self._delivery_tags),
                        "redelivered": False,
                        "exchange": exchange,
                        "routingKey": routing_key,
                    },
                )
                await consumer(message)
                delivered += 1
        return delivered
