"""Broker connector factory: selects implementation from config. Only place that imports concrete brokers."""
from __future__ import annotations

from subscriber.app.config.settings import Settings
from subscriber.app.infrastructure.messaging.inmemory.in_memory_broker import InMemoryBroker
from subscriber.app.infrastructure.messaging.rabbitmq.aio_pika_broker import AioPikaConnector
from subscriber.app.ports.broker import BrokerConnector


def create_broker_connector(settings: Settings) -> BrokerConnector:
    backend = settings.broker_backend.strip().lower()

    if backend == "rabbitmq":
        return AioPikaConnector(settings)

    if backend == "inmemory":
        return InMemoryBroker()

    raise ValueError(f"Unsupported broker backend: {backend}")
