"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class ReceivedMessage:
    """One inbound delivery, transport-agnostic (value object)."""

    payload: Any
    headers: dict[str, Any] = field(default_factory=dict)
    delivery_info: dict[str, Any] = field(default_factory=dict)

    def to_hook_arguments(self) -> dict[str, Any]:
        """Arguments of the onMessageReceived hook, keyed the way host schemas name them."""
        return {
            "payload": self.payload,
            "headers": dict(self.headers),
            "deliveryInfo": dict(self.delivery_info),
        }


class SubscriptionAttributes(BaseModel):
    """Declarative attributes a host supplies to build an AMQP subscription.

    Accepts both the camelCase keys found in host configuration files and the
    snake_case field names. Keys this model does not know about are kept.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    options: dict[str, Any] = Field(default_factory=dict)
    queue_options: dict[str, Any] = Field(default_factory=dict, alias="queueOptions")
    queue_name: str | None = Field(None, alias="queueName")
    exchange: str | None = None
    routing_key: str | None = Field(None, alias="routingKey")

    @field_validator("options", "queue_options", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("queue_name", "exchange", "routing_key", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
