"""Subscriber-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

PROTOCOL_NAME = "amqp"
PROTOCOL_ALTERNATIVE_NAME = "amqp-0.9"
ON_MESSAGE_RECEIVED = "onMessageReceived"


class SubscriptionState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    BOUND = "BOUND"
    LISTENING = "LISTENING"
    UNSUBSCRIBING = "UNSUBSCRIBING"
    CLOSED = "CLOSED"
    FAILED = "FAILED"
