"""Unit tests for the default hook executor."""
from __future__ import annotations

import pytest

from subscriber.app.application.hooks import DEFAULT_HISTORY_LIMIT, HookRegistry


@pytest.mark.asyncio
async def test_history_keeps_only_recent_events():
    hooks = HookRegistry()

    for i in range(1000):
        await hooks.execute_hook_event("onMessageReceived", {"payload": i})

    assert len(hooks.history) == DEFAULT_HISTORY_LIMIT
    assert hooks.history[0].arguments == {"payload": 1000 - DEFAULT_HISTORY_LIMIT}
    assert hooks.history[-1].arguments == {"payload": 999}
    assert len(hooks.events("onMessageReceived")) == DEFAULT_HISTORY_LIMIT


@pytest.mark.asyncio
async def test_history_can_be_disabled_without_losing_handlers():
    hooks = HookRegistry(history_limit=0)
    seen: list[object] = []

    async def record(arguments):
        seen.append(arguments["payload"])

    hooks.on("onMessageReceived", record)
    hooks.on("onMessageReceived", lambda arguments: seen.append("sync"))
    await hooks.execute_hook_event("onMessageReceived", {"payload": "m1"})

    assert seen == ["m1", "sync"]
    assert len(hooks.history) == 0


def test_negative_history_limit_is_rejected():
    with pytest.raises(ValueError):
        HookRegistry(history_limit=-1)
