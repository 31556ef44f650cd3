"""Default hook executor: named events fan out to registered handlers."""
from __future__ import annotations

import inspect
from collections import deque
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

HookHandler = Callable[[dict[str, Any]], Awaitable[None] | None]

DEFAULT_HISTORY_LIMIT = 100


@dataclass(frozen=True)
class HookEvent:
    event: str
    arguments: dict[str, Any]


class HookRegistry:
    """Implements HookExecutor. Handlers may be plain functions or coroutine functions.

    ``history`` keeps only the most recent ``history_limit`` fired events.
    """

    def __init__(self, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if history_limit < 0:
            raise ValueError("history_limit must be >= 0")
        self._handlers: dict[str, list[HookHandler]] = {}
        self.history: deque[HookEvent] = deque(maxlen=history_limit)

    def on(self, event: str, handler: HookHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def events(self, event: str) -> list[HookEvent]:
        return [fired for fired in self.history if fired.event == event]

    async def execute_hook_event(self, event: str, arguments: dict[str, Any]) -> None:
        self.history.append(HookEvent(event=event, arguments=arguments))
        for handler in self._handlers.get(event, []):
            outcome = handler(arguments)
            if inspect.isawaitable(outcome):
                await outcome
