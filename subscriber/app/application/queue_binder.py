"""Queue binder: declare the queue, attach the consumer, then bind if asked to."""
from __future__ import annotations

from typing import Any, Mapping

from loguru import logger

from subscriber.app.core import SERVICE_NAME
from subscriber.app.domain.errors import BindingError
from subscriber.app.ports.broker import BrokerConnection, BrokerQueue, MessageCallback


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class QueueBinder:
    """
    Makes a queue consumable on a ready connection.

    The consumer callback is registered right after declaration so nothing published
    between declare and bind is missed. Returns only once the queue is usable:
    after the bind acknowledgement when both exchange and routing key are given,
    immediately when the queue sits on the default exchange.
    """

    async def bind(
        self,
        connection: BrokerConnection,
        *,
        queue_name: str | None,
        queue_options: Mapping[str, Any],
        exchange: str | None,
        routing_key: str | None,
        on_message: MessageCallback,
    ) -> BrokerQueue:
        if not queue_name and not (exchange and routing_key):
            raise BindingError(queue_name, exchange, routing_key)

        queue = await connection.declare_queue(queue_name or "", queue_options)
        _log("queue_declared", queue_name=queue.name)
        consumer_tag = await queue.consume(on_message)
        _log("queue_consuming", queue_name=queue.name, consumer_tag=consumer_tag)

        if exchange and routing_key:
            logger.debug(
                "binding {} to exchange: {} and routingKey: {}", queue.name, exchange, routing_key
            )
            await queue.bind(exchange, routing_key)
            _log("queue_bound", queue_name=queue.name, exchange=exchange, routing_key=routing_key)
        else:
            logger.debug("queue {} bound to the default exchange", queue.name)
        return queue
