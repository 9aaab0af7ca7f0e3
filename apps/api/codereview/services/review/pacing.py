from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Protocol


class Pacer(Protocol):
    async def pause(self) -> None: ...


class FixedDelayPacer:
    """Waits a fixed number of seconds between bulk items (upstream quotas are shared)."""

    def __init__(self, delay_seconds: float = 1.0, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    async def pause(self) -> None:
        if self.delay_seconds > 0:
            await self._sleep(self.delay_seconds)
