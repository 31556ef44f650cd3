"""Subscription failures raised to the host."""
from __future__ import annotations


class SubscriptionError(Exception):
    """Base for subscription failures and lifecycle misuse."""


class BindingError(SubscriptionError):
    """Raised when the queue cannot be attached to any exchange."""

    def __init__(self, queue_name: str | None, exchange: str | None, routing_key: str | None) -> None:
        self.queue_name = queue_name
        self.exchange = exchange
        self.routing_key = routing_key
        super().__init__(f"Impossible to subscribe: {queue_name}:{exchange}:{routing_key}")


class SubscriptionClosedError(SubscriptionError):
    """Settles a pending receive when the subscription is torn down."""
