"""One-shot cancellation signal shared by the two loops of a session.

Every suspension point (local event, network read, handoff) goes through
CancelToken.guard(), so a quit is observed wherever a loop happens to be
waiting instead of killing tasks from the outside.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from src.errors import CancelRequested

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancelToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "quit") -> None:
        """Fire the signal. Only the first reason is kept."""
        if self.cancelled:
            return
        self.reason = reason
        logger.info("Session cancel requested: %s", reason)
        self._event.set()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first.

        Raises CancelRequested if the token fires before the awaitable
        completes; the abandoned awaitable is cancelled and awaited.
        """
        task = asyncio.ensure_future(awaitable)
        if self.cancelled:
            task.cancel()
            await asyncio.wait({task})
            raise CancelRequested(self.reason or "quit")

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if task in done:
            return task.result()
        raise CancelRequested(self.reason or "quit")
