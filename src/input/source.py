"""Local-move source interface and a scripted implementation.

LocalMoveSource is what the input-capture loop reads from. The PyGame
implementation lives in src.input.handler; ScriptedMoveSource replays a
fixed list of events so sessions can be driven without a window.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto


class InputKind(Enum):
    DIGIT = auto()   # a number key, value = the digit
    QUIT = auto()    # q, Esc or window close
    REDRAW = auto()  # window resized or exposed


@dataclass(frozen=True, slots=True)
class InputEvent:
    kind: InputKind
    value: int = 0

    @classmethod
    def digit(cls, value: int) -> InputEvent:
        return cls(InputKind.DIGIT, value)


QUIT_EVENT = InputEvent(InputKind.QUIT)
REDRAW_EVENT = InputEvent(InputKind.REDRAW)


class LocalMoveSource(ABC):
    @abstractmethod
    async def next_event(self) -> InputEvent | None:
        """Wait for the next local event.

        Returns None once the source is exhausted for good (e.g. the
        window is gone).
        """
        ...


class ScriptedMoveSource(LocalMoveSource):
    """Replays events, optionally gated on outside signals.

    Each script entry is either an InputEvent or an awaitable-producing
    callable; the callable is awaited before moving on, which lets tests
    wait for "my turn" before pressing a key. When the script runs out,
    next_event() blocks forever, like an idle player.
    """

    def __init__(self, script: Iterable[object] = ()) -> None:
        self._script = list(script)
        self._pending: asyncio.Queue[InputEvent] | None = None

    def push(self, event: InputEvent) -> None:
        """Queue an extra event after the script (e.g. a quit from a test)."""
        self._queue().put_nowait(event)

    def _queue(self) -> asyncio.Queue[InputEvent]:
        if self._pending is None:
            self._pending = asyncio.Queue()
        return self._pending

    async def next_event(self) -> InputEvent | None:
        while self._script:
            entry = self._script.pop(0)
            if isinstance(entry, InputEvent):
                return entry
            await entry()
        return await self._queue().get()
