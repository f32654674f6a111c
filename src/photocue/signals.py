"""Re-armable completion channel."""

from __future__ import annotations

import asyncio


class CompletionSignal:
    """
    Single-fire event that can be re-armed for the next cycle.

    Each cycle gets its own asyncio.Event, so a waiter from an earlier
    cycle is never woken by a later one. Arming while the current event
    is still unfired keeps it, so existing waiters stay attached.

    Example:
        signal = CompletionSignal()
        signal.arm()
        ...
        signal.fire()      # wakes every waiter of this cycle
        await signal.wait()
    """

    def __init__(self) -> None:
        self._event: asyncio.Event | None = None
        self.fired_count = 0

    @property
    def armed(self) -> bool:
        return self._event is not None and not self._event.is_set()

    def arm(self) -> None:
        if not self.armed:
            self._event = asyncio.Event()

    def fire(self) -> bool:
        """Fire the armed event. Returns False if nothing was armed."""
        if not self.armed:
            return False
        self._event.set()
        self.fired_count += 1
        return True

    async def wait(self) -> None:
        """Wait for the current cycle. Returns at once if never armed."""
        if self._event is None:
            return
        await self._event.wait()
