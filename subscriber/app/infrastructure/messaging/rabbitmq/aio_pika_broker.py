"""
aio-pika implementation of the broker port.

One plain (non-robust) connection and one channel per subscription: a broker
disconnect is reported through the error callbacks and never reconnected.
Options keep their aio-pika keyword names; the camelCase spellings used by
host configuration files are translated first.
"""
from __future__ import annotations

from typing import Any, Mapping

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractIncomingMessage, AbstractQueue
from loguru import logger

from subscriber.app.config.settings import Settings
from subscriber.app.core import SERVICE_NAME
from subscriber.app.infrastructure.messaging.rabbitmq.aio_pika_message_adapter import to_received_message
from subscriber.app.ports.broker import ErrorCallback, MessageCallback

CONNECTION_OPTION_NAMES = {"vhost": "virtualhost", "user": "login", "username": "login"}
QUEUE_OPTION_NAMES = {"autoDelete": "auto_delete"}
# Options other clients accept that have no aio-pika equivalent.
IGNORED_QUEUE_OPTIONS = {"noDeclare", "closeChannelOnUnsubscribe"}


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def translate_connection_options(options: Mapping[str, Any]) -> dict[str, Any]:
    return {CONNECTION_OPTION_NAMES.get(key, key): value for key, value in options.items()}


def translate_queue_options(options: Mapping[str, Any]) -> dict[str, Any]:
    return {
        QUEUE_OPTION_NAMES.get(key, key): value
        for key, value in options.items()
        if key not in IGNORED_QUEUE_OPTIONS
    }


class AioPikaQueue:
    def __init__(self, queue: AbstractQueue) -> None:
        self._queue = queue

    @property
    def name(self) -> str:
        return self._queue.name

    async def consume(self, callback: MessageCallback) -> str:
        queue_name = self._queue.name

        async def on_message(message: AbstractIncomingMessage) -> None:
            async with message.process():
                await callback(to_received_message(message, queue_name=queue_name))

        return await self._queue.consume(on_message, no_ack=False)

    async def bind(self, exchange: str, routing_key: str) -> None:
        await self._queue.bind(exchange, routing_key=routing_key)


class AioPikaConnection:
    def __init__(self, connection: AbstractConnection, channel: AbstractChannel) -> None:
        self._connection = connection
        self._channel = channel
        self._error_callbacks: list[ErrorCallback] = []
        self._closing = False
        self._register_close_callback(connection)

    def _register_close_callback(self, connection: AbstractConnection) -> None:
        callbacks = getattr(connection, "close_callbacks", None)
        if callbacks is not None and callable(getattr(callbacks, "add", None)):
            callbacks.add(self._on_connection_closed)

    def _on_connection_closed(self, sender: Any = None, exc: BaseException | None = None, *args: Any) -> None:
        if self._closing or exc is None:
            return
        _log("broker_disconnect_detected", error=str(exc))
        for callback in list(self._error_callbacks):
            callback(exc)

    @property
    def is_closed(self) -> bool:
        return bool(self._connection.is_closed)

    def add_error_callback(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    async def declare_queue(self, name: str, options: Mapping[str, Any]) -> AioPikaQueue:
        queue = await self._channel.declare_queue(name, **translate_queue_options(options))
        return AioPikaQueue(queue)

    async def close(self) -> None:
        self._closing = True
        try:
            await self._channel.close()
        except Exception as e:
            logger.warning("channel close failed (continuing to close connection): {}", e)
        await self._connection.close()


class AioPikaConnector:
    """BrokerConnector over aio_pika.connect; falls back to the broker_* settings when options are empty."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def _build_amqp_url(self) -> str:
        vhost = self._settings.broker_vhost.lstrip("/")
        return (
            f"amqp://{self._settings.broker_user}:{self._settings.broker_password}"
            f"@{self._settings.broker_host}:{self._settings.broker_port}/{vhost}"
        )

    async def connect(self, options: Mapping[str, Any]) -> AioPikaConnection:
        kwargs = translate_connection_options(options)
        if not kwargs:
            kwargs = {"url": self._build_amqp_url()}
        _log("rmq_connect_attempt", host=kwargs.get("host", self._settings.broker_host))
        connection = await aio_pika.connect(**kwargs)
        try:
            channel = await connection.channel()
            await channel.set_qos(prefetch_count=self._settings.prefetch_count)
        except Exception:
            await connection.close()
            raise
        _log("rmq_connected")
        return AioPikaConnection(connection, channel)
