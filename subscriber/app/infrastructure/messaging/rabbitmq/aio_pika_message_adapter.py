"""Adapter: convert aio_pika.IncomingMessage into a domain ReceivedMessage."""
from __future__ import annotations

import json
from typing import Any

from aio_pika.abc import AbstractIncomingMessage
from loguru import logger

from subscriber.app.domain.models import ReceivedMessage

JSON_CONTENT_TYPE = "application/json"


def _decode_payload(message: AbstractIncomingMessage) -> Any:
    if (message.content_type or "").split(";")[0].strip().lower() != JSON_CONTENT_TYPE:
        return message.body
    try:
        return json.loads(message.body.decode(message.content_encoding or "utf-8"))
    except (UnicodeDecodeError, LookupError, json.JSONDecodeError) as e:
        logger.warning("payload declared as json could not be decoded: {}", e)
        return message.body


def _delivery_info(message: AbstractIncomingMessage) -> dict[str, Any]:
    timestamp = message.timestamp
    return {
        "contentType": message.content_type,
        "contentEncoding": message.content_encoding,
        "queue": getattr(message, "queue_name", None),
        "deliveryTag": message.delivery_tag,
        "redelivered": message.redelivered,
        "exchange": message.exchange,
        "routingKey": message.routing_key,
        "consumerTag": message.consumer_tag,
        "messageId": message.message_id,
        "correlationId": message.correlation_id,
        "replyTo": message.reply_to,
        "timestamp": timestamp.isoformat() if timestamp is not None else None,
        "type": message.type,
        "appId": message.app_id,
    }


def to_received_message(message: AbstractIncomingMessage, *, queue_name: str | None = None) -> ReceivedMessage:
    info = _delivery_info(message)
    if queue_name is not None:
        info["queue"] = queue_name
    return ReceivedMessage(
        payload=_decode_payload(message),
        headers=dict(message.headers or {}),
        delivery_info=info,
    )
