"""Port: hook events the subscription reports to its host."""
from __future__ import annotations

from typing import Any, Awaitable, Protocol


class HookExecutor(Protocol):
    def execute_hook_event(self, event: str, arguments: dict[str, Any]) -> Awaitable[None] | None:
        """Notify the host; may return an awaitable the subscription waits on."""
        ...
