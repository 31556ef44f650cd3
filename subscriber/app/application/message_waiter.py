"""
Message waiter: turns push deliveries into one pull per receive call.

wait() hands out a fresh future and keeps it as the single pending waiter.
deliver() notifies the onMessageReceived hook with the message, then resolves
the pending waiter with None; the data travels only through the hook.
A delivery with no pending waiter is counted, and the next wait() returns an
already-resolved future for it.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any

from loguru import logger

from subscriber.app.constants import ON_MESSAGE_RECEIVED
from subscriber.app.core import SERVICE_NAME
from subscriber.app.domain.models import ReceivedMessage
from subscriber.app.ports.hooks import HookExecutor


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class MessageWaiter:
    def __init__(self, hooks: HookExecutor, *, queue_name: str = "") -> None:
        self._hooks = hooks
        self._queue_name = queue_name
        self._pending: asyncio.Future[None] | None = None
        self._unclaimed = 0
        self._closed_with: BaseException | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def unclaimed(self) -> int:
        return self._unclaimed

    def reset(self) -> None:
        """Re-arm after close() so a new subscribe() can deliver again."""
        self._closed_with = None
        self._unclaimed = 0

    def wait(self) -> asyncio.Future[None]:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        if self._closed_with is not None:
            future.set_exception(self._closed_with)
            return future
        if self._unclaimed:
            self._unclaimed -= 1
            future.set_result(None)
            logger.debug("queue {} resolved receive from buffered arrival", self._queue_name)
            return future
        if self.pending:
            logger.warning("queue {} receive replaced a pending receive", self._queue_name)
            self._pending.cancel()  # type: ignore[union-attr]
        self._pending = future
        logger.debug("queue {} registering receive waiter", self._queue_name)
        return future

    async def deliver(self, message: ReceivedMessage) -> None:
        if self._closed_with is not None:
            logger.warning("queue {} dropped a message delivered after close", self._queue_name)
            return
        try:
            outcome = self._hooks.execute_hook_event(ON_MESSAGE_RECEIVED, message.to_hook_arguments())
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.exception("onMessageReceived hook failed: {}", e)

        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.set_result(None)
            _log("message_received", queue_name=self._queue_name)
        else:
            self._unclaimed += 1
            _log("message_buffered", queue_name=self._queue_name, unclaimed=self._unclaimed)

    def close(self, exc: BaseException) -> None:
        self._closed_with = exc
        self._unclaimed = 0
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.set_exception(exc)
