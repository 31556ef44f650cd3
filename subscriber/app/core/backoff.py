"""Backoff utilities for the host runner.

`exponential_backoff` yields the delay that precedes the next attempt, then sleeps for the
grown delay before yielding again. The subscription core never retries on its own; callers
that want retries (the host runner) iterate this generator around `subscribe()`.
"""
import asyncio
from typing import AsyncIterator


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
) -> AsyncIterator[float]:
    delay = min(initial_delay, max_delay)
    for attempt in range(1, max(max_attempts, 1) + 1):
        yield delay
        if attempt < max_attempts:
            await asyncio.sleep(delay)
            delay = min(delay * multiplier, max_delay)
