"""
AMQP subscription: the lifecycle the host drives in lock-step.

Lifecycle:
  IDLE -> CONNECTING -> BOUND -> LISTENING (receive_message, repeatable)
  -> UNSUBSCRIBING -> CLOSED.
  CONNECTING/BOUND -> FAILED when the connection errors or the queue cannot be bound;
  the connection is released before the error reaches the caller.
  unsubscribe() is valid from every state and idempotent.
"""
from __future__ import annotations

import asyncio
from typing import Any, Mapping

from loguru import logger

from subscriber.app.application.connection_manager import ConnectionManager
from subscriber.app.application.message_waiter import MessageWaiter
from subscriber.app.application.queue_binder import QueueBinder
from subscriber.app.constants import SubscriptionState
from subscriber.app.core import SERVICE_NAME
from subscriber.app.domain.errors import SubscriptionClosedError, SubscriptionError
from subscriber.app.domain.models import SubscriptionAttributes
from subscriber.app.domain.queue_name import generate_queue_name
from subscriber.app.ports.broker import BrokerConnection, BrokerConnector, BrokerQueue
from subscriber.app.ports.hooks import HookExecutor


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


_SUBSCRIBABLE = (SubscriptionState.IDLE, SubscriptionState.FAILED, SubscriptionState.CLOSED)
_RECEIVABLE = (SubscriptionState.BOUND, SubscriptionState.LISTENING)


class AmqpSubscription:
    def __init__(
        self,
        attributes: SubscriptionAttributes | Mapping[str, Any],
        *,
        connector: BrokerConnector,
        hooks: HookExecutor,
        binder: QueueBinder | None = None,
    ) -> None:
        if not isinstance(attributes, SubscriptionAttributes):
            attributes = SubscriptionAttributes.model_validate(dict(attributes))
        self._attributes = attributes
        self._queue_name = attributes.queue_name or self.create_queue_name()
        self._queue_options: dict[str, Any] = dict(attributes.queue_options)
        self._state = SubscriptionState.IDLE
        self._connection_manager = ConnectionManager(connector, attributes.options)
        self._binder = binder or QueueBinder()
        self._waiter = MessageWaiter(hooks, queue_name=self._queue_name)
        self._queue: BrokerQueue | None = None

    @staticmethod
    def create_queue_name() -> str:
        return generate_queue_name()

    @property
    def attributes(self) -> SubscriptionAttributes:
        return self._attributes

    @property
    def queue_name(self) -> str:
        return self._queue_name

    @property
    def exchange(self) -> str | None:
        return self._attributes.exchange

    @property
    def routing_key(self) -> str | None:
        return self._attributes.routing_key

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._attributes.options)

    @property
    def queue_options(self) -> dict[str, Any]:
        return dict(self._queue_options)

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def connection(self) -> BrokerConnection | None:
        return self._connection_manager.connection

    def _set_state(self, state: SubscriptionState) -> None:
        self._state = state

    async def subscribe(self) -> None:
        if self._state not in _SUBSCRIBABLE:
            raise SubscriptionError(f"cannot subscribe while {self._state.value}")
        self._set_state(SubscriptionState.CONNECTING)
        self._waiter.reset()
        _log("subscribe_started", queue_name=self._queue_name)
        try:
            connection = await self._connection_manager.connect()
            self._queue = await self._connection_manager.guard(
                self._binder.bind(
                    connection,
                    queue_name=self._queue_name,
                    queue_options=self._queue_options,
                    exchange=self.exchange,
                    routing_key=self.routing_key,
                    on_message=self._waiter.deliver,
                )
            )
        except BaseException as e:
            self._queue = None
            if self._state != SubscriptionState.CONNECTING and isinstance(e, Exception):
                # unsubscribe() closed the connection under the bind; it stays CLOSED
                await self._connection_manager.disconnect()
                raise SubscriptionClosedError(
                    f"subscription to {self._queue_name} closed during subscribe"
                ) from e
            self._set_state(SubscriptionState.FAILED)
            _log("subscribe_failed", queue_name=self._queue_name, error=str(e))
            await self._connection_manager.disconnect()
            raise
        if self._state != SubscriptionState.CONNECTING:
            # unsubscribe() ran while the connection was being set up
            self._queue = None
            await self._connection_manager.disconnect()
            raise SubscriptionClosedError(f"subscription to {self._queue_name} closed during subscribe")
        self._set_state(SubscriptionState.BOUND)
        _log("subscribe_ready", queue_name=self._queue_name)

    def receive_message(self) -> asyncio.Future[None]:
        if self._state not in _RECEIVABLE:
            raise SubscriptionError(f"cannot receive while {self._state.value}")
        self._set_state(SubscriptionState.LISTENING)
        return self._waiter.wait()

    async def unsubscribe(self) -> None:
        if self._state == SubscriptionState.CLOSED and not self._connection_manager.connected:
            return
        self._set_state(SubscriptionState.UNSUBSCRIBING)
        self._waiter.close(SubscriptionClosedError(f"subscription to {self._queue_name} closed"))
        self._queue = None
        await self._connection_manager.disconnect()
        self._set_state(SubscriptionState.CLOSED)
        _log("unsubscribed", queue_name=self._queue_name)
