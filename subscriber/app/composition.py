"""Subscriber composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle. Retrying subscribe() is a host decision and lives here,
not in the subscription.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from subscriber.app.application.hooks import HookRegistry
from subscriber.app.application.subscription import AmqpSubscription
from subscriber.app.config.settings import Settings
from subscriber.app.constants import PROTOCOL_NAME
from subscriber.app.core import SERVICE_NAME
from subscriber.app.core.backoff import exponential_backoff
from subscriber.app.domain.models import SubscriptionAttributes
from subscriber.app.infrastructure.messaging.factory import create_broker_connector
from subscriber.app.ports.broker import BrokerConnector
from subscriber.app.protocol.registration import ProtocolManager, entry_point


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def attributes_from_settings(settings: Settings) -> SubscriptionAttributes:
    return SubscriptionAttributes(
        queueName=settings.queue_name or None,
        exchange=settings.exchange or None,
        routingKey=settings.routing_key or None,
        queueOptions={
            "durable": settings.queue_durable,
            "auto_delete": settings.queue_auto_delete,
        },
    )


class SubscriberDependencies:
    """Holds the wired subscription and its lifecycle."""

    def __init__(
        self,
        *,
        settings: Settings,
        connector: BrokerConnector | None = None,
        hooks: HookRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._connector = connector or create_broker_connector(settings)
        self._hooks = hooks or HookRegistry()
        self._protocol_manager = ProtocolManager()
        entry_point(self._protocol_manager, self._connector)
        self._subscription: AmqpSubscription | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def hooks(self) -> HookRegistry:
        return self._hooks

    @property
    def connector(self) -> BrokerConnector:
        return self._connector

    @property
    def protocol_manager(self) -> ProtocolManager:
        return self._protocol_manager

    @property
    def subscription(self) -> AmqpSubscription:
        if self._subscription is None:
            raise RuntimeError("subscription is not initialized")
        return self._subscription

    async def connect(self) -> None:
        self._subscription = self._protocol_manager.create_subscription(
            PROTOCOL_NAME, attributes_from_settings(self._settings), self._hooks
        )
        attempt = 0
        async for delay in exponential_backoff(
            self._settings.initial_backoff_seconds,
            self._settings.max_backoff_seconds,
            self._settings.backoff_multiplier,
            self._settings.max_connection_attempts,
        ):
            attempt += 1
            _log("subscribe_attempt", attempt=attempt, delay=delay)
            try:
                await self._subscription.subscribe()
                return
            except Exception as e:
                logger.warning("subscribe failed: {}", e)
                if attempt >= self._settings.max_connection_attempts:
                    _log("subscribe_exhausted", attempt=attempt)
                    raise

    async def close(self) -> None:
        if self._subscription is not None:
            try:
                await self._subscription.unsubscribe()
            except Exception as exc:
                logger.warning("unsubscribe failed: {}", exc)
            self._subscription = None


def create_subscriber_dependencies(settings: Settings | None = None) -> SubscriberDependencies:
    return SubscriberDependencies(settings=settings or Settings())
