"""Input handler — converts PyGame events to local input events.

Number keys 1-9 (top row or keypad) pick a cell or a guess.
Q, Esc or closing the window quits. Resizing or exposing the window asks
for a redraw. F11 toggles fullscreen.
"""

from __future__ import annotations

import asyncio
from collections import deque

import pygame

from src.config import INPUT_POLL_INTERVAL_S
from src.input.source import QUIT_EVENT, REDRAW_EVENT, InputEvent, LocalMoveSource

_DIGIT_KEYS = {getattr(pygame, f"K_{n}"): n for n in range(10)}
_DIGIT_KEYS.update({getattr(pygame, f"K_KP{n}"): n for n in range(10)})
_QUIT_KEYS = {pygame.K_q, pygame.K_ESCAPE}


def translate_event(event: pygame.event.Event) -> InputEvent | None:
    """Map one PyGame event to an InputEvent, or None if it is irrelevant."""
    if event.type == pygame.QUIT:
        return QUIT_EVENT
    if event.type in (pygame.VIDEORESIZE, pygame.VIDEOEXPOSE):
        return REDRAW_EVENT
    if event.type == pygame.KEYDOWN:
        if event.key in _QUIT_KEYS:
            return QUIT_EVENT
        if event.key in _DIGIT_KEYS:
            return InputEvent.digit(_DIGIT_KEYS[event.key])
    return None


class PygameMoveSource(LocalMoveSource):
    """Polls the PyGame event queue without blocking the event loop."""

    def __init__(self, poll_interval: float = INPUT_POLL_INTERVAL_S) -> None:
        self._poll_interval = poll_interval
        self._buffered: deque[InputEvent] = deque()
        self._closed = False

    async def next_event(self) -> InputEvent | None:
        while not self._buffered:
            if self._closed:
                return None
            self._drain()
            if not self._buffered:
                await asyncio.sleep(self._poll_interval)
        event = self._buffered.popleft()
        if event.kind is QUIT_EVENT.kind:
            self._closed = True
        return event

    def _drain(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.KEYDOWN and event.key == pygame.K_F11:
                pygame.display.toggle_fullscreen()
                self._buffered.append(REDRAW_EVENT)
                continue
            translated = translate_event(event)
            if translated is not None:
                self._buffered.append(translated)
