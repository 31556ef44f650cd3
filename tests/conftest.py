from __future__ import annotations

from typing import Any, Callable

import pytest

from subscriber.app.application.hooks import HookRegistry
from subscriber.app.application.subscription import AmqpSubscription
from subscriber.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker


class _Settings:
    """Stand-in for Settings; only the attributes the code under test reads."""

    broker_backend = "inmemory"
    broker_host = "localhost"
    broker_port = 5672
    broker_user = "guest"
    broker_password = "guest"
    broker_vhost = "/"
    prefetch_count = 1
    queue_name = ""
    exchange = ""
    routing_key = ""
    queue_durable = False
    queue_auto_delete = True
    expected_messages = 1
    receive_timeout_seconds = 1.0
    initial_backoff_seconds = 0.0
    max_backoff_seconds = 0.0
    max_connection_attempts = 1
    backoff_multiplier = 2.0

    def __init__(self, **overrides: Any) -> None:
        for key, value in overrides.items():
            setattr(self, key, value)


@pytest.fixture()
def settings_factory() -> Callable[..., _Settings]:
    return _Settings


@pytest.fixture()
def broker() -> InMemoryBroker:
    return InMemoryBroker()


@pytest.fixture()
def hooks() -> HookRegistry:
    return HookRegistry()


@pytest.fixture()
def make_subscription(broker: InMemoryBroker, hooks: HookRegistry) -> Callable[..., AmqpSubscription]:
    def _make(**attributes: Any) -> AmqpSubscription:
        return AmqpSubscription(attributes, connector=broker, hooks=hooks)

    return _make
