"""Protocol registration: how a host discovers and builds AMQP subscriptions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from loguru import logger

from subscriber.app.application.subscription import AmqpSubscription
from subscriber.app.constants import (
    ON_MESSAGE_RECEIVED,
    PROTOCOL_ALTERNATIVE_NAME,
    PROTOCOL_NAME,
)
from subscriber.app.core import SERVICE_NAME
from subscriber.app.domain.models import SubscriptionAttributes
from subscriber.app.ports.broker import BrokerConnector
from subscriber.app.ports.hooks import HookExecutor

SubscriptionFactory = Callable[[SubscriptionAttributes, HookExecutor], AmqpSubscription]

SUBSCRIPTION_SCHEMA: dict[str, Any] = {
    "attributes": {
        "options": {
            "description": "Connection options",
            "type": "object",
            "required": False,
        },
        "queueOptions": {
            "type": "object",
            "required": False,
        },
        "queueName": {
            "description": "Randomly generated when empty",
            "type": "string",
            "required": False,
        },
        "exchange": {
            "description": "Defaults to the default exchange when empty",
            "type": "string",
            "required": False,
        },
        "routingKey": {
            "description": "Defaults to the queue name when empty",
            "type": "string",
            "required": False,
        },
    },
    "hooks": {
        ON_MESSAGE_RECEIVED: {
            "arguments": {
                "payload": {},
                "headers": {},
                "deliveryInfo": {},
            }
        }
    },
}


@dataclass
class SubscriptionProtocol:
    """Capability metadata plus the factory a host calls to build a subscription."""

    name: str
    factory: SubscriptionFactory
    description: str = ""
    homepage: str = ""
    library_homepage: str = ""
    library: str = ""
    schema: dict[str, Any] = field(default_factory=dict)
    alternative_names: list[str] = field(default_factory=list)

    def add_alternative_name(self, name: str) -> "SubscriptionProtocol":
        if name not in self.alternative_names:
            self.alternative_names.append(name)
        return self

    def set_library(self, library: str) -> "SubscriptionProtocol":
        self.library = library
        return self

    def matches(self, name: str) -> bool:
        wanted = name.strip().lower()
        return wanted == self.name.lower() or wanted in (n.lower() for n in self.alternative_names)

    def create(self, attributes: SubscriptionAttributes | Mapping[str, Any], hooks: HookExecutor) -> AmqpSubscription:
        if not isinstance(attributes, SubscriptionAttributes):
            attributes = SubscriptionAttributes.model_validate(dict(attributes))
        return self.factory(attributes, hooks)


class ProtocolManager:
    def __init__(self) -> None:
        self._protocols: list[SubscriptionProtocol] = []

    @property
    def protocols(self) -> list[SubscriptionProtocol]:
        return list(self._protocols)

    def add_protocol(self, protocol: SubscriptionProtocol) -> None:
        self._protocols.append(protocol)
        logger.bind(
            service_name=SERVICE_NAME,
            event="protocol_registered",
            protocol=protocol.name,
            alternative_names=protocol.alternative_names,
        ).info("")

    def find(self, name: str) -> SubscriptionProtocol:
        for protocol in self._protocols:
            if protocol.matches(name):
                return protocol
        raise KeyError(f"Unsupported subscription type: {name}")

    def create_subscription(
        self,
        subscription_type: str,
        attributes: SubscriptionAttributes | Mapping[str, Any],
        hooks: HookExecutor,
    ) -> AmqpSubscription:
        return self.find(subscription_type).create(attributes, hooks)


def create_amqp_protocol(connector: BrokerConnector) -> SubscriptionProtocol:
    def factory(attributes: SubscriptionAttributes, hooks: HookExecutor) -> AmqpSubscription:
        return AmqpSubscription(attributes, connector=connector, hooks=hooks)

    return (
        SubscriptionProtocol(
            PROTOCOL_NAME,
            factory,
            description="Subscription to handle AMQP 0.9 protocol",
            homepage="https://github.com/enqueuer-land/enqueuer-plugin-amqp",
            library_homepage="https://github.com/mosquito/aio-pika",
            schema=SUBSCRIPTION_SCHEMA,
        )
        .add_alternative_name(PROTOCOL_ALTERNATIVE_NAME)
        .set_library("aio-pika")
    )


def entry_point(protocol_manager: ProtocolManager, connector: BrokerConnector) -> None:
    protocol_manager.add_protocol(create_amqp_protocol(connector))
