"""GameSession: the per-game state machine and sole owner of game state.

Both loops of a peer talk to the session only through `submit()` (an
intent in, outbound wire messages back) and read it only through immutable
snapshots. The session lock is held for exactly one validate-and-apply plus
its render, never across a network or input wait.

Lifecycle: AWAITING_HANDSHAKE -> game-specific phases -> FINISHED(outcome).
The outcome is set once and never changes.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum, auto

from src.errors import LocalInputRejected
from src.networking.protocol import Role, WirePhase
from src.networking.turn_channel import TurnChannel

logger = logging.getLogger(__name__)


class SessionPhase(Enum):
    AWAITING_HANDSHAKE = auto()
    LOCAL_TURN = auto()    # Tic-Tac-Toe
    REMOTE_TURN = auto()   # Tic-Tac-Toe
    CHOOSING = auto()      # RPS: waiting for the local guess
    COMMITTED = auto()     # RPS: local guess locked in, exchanging
    FINISHED = auto()


class SessionOutcome(Enum):
    WON = auto()
    LOST = auto()
    DRAW = auto()
    ABORTED = auto()


@dataclass(frozen=True, slots=True)
class Outbound:
    """One wire message the network loop must send."""
    phase: WirePhase
    data: bytes


class RenderSink(ABC):
    """Receives a snapshot after every state mutation.

    Never called concurrently with itself.
    """

    @abstractmethod
    def render(self, snapshot: object) -> None:
        ...


class GameSession(ABC):
    """Base class for one play-through of one game between two peers."""

    def __init__(self, role: Role, sink: RenderSink) -> None:
        self.role = role
        self._sink = sink
        self._lock = asyncio.Lock()
        self._phase = SessionPhase.AWAITING_HANDSHAKE
        self._outcome: SessionOutcome | None = None
        self.abort_reason: str | None = None

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def outcome(self) -> SessionOutcome | None:
        return self._outcome

    @property
    def finished(self) -> bool:
        return self._phase is SessionPhase.FINISHED

    async def start(self) -> None:
        """Leave AWAITING_HANDSHAKE. Called once the handshake completed."""
        async with self._lock:
            if self._phase is not SessionPhase.AWAITING_HANDSHAKE:
                raise RuntimeError(f"Session already started ({self._phase.name})")
            self._phase = self._first_phase()
            logger.info("Session started as %s, phase %s", self.role.value, self._phase.name)
            self._render()

    async def submit(self, intent: object) -> tuple[Outbound, ...]:
        """Validate and apply one intent, render, and return what to send.

        Raises LocalInputRejected for local intents that do not fit the
        current phase. Remote intents that break the protocol raise
        ProtocolViolation or CryptoFailure without changing state.
        """
        async with self._lock:
            if self.finished:
                raise LocalInputRejected("Game is over")
            outbound = self._apply(intent)
            self._render()
            return outbound

    async def abort(self, reason: str) -> None:
        """Finish as ABORTED unless the game already ended."""
        async with self._lock:
            if self.finished:
                return
            self.abort_reason = reason
            self._finish(SessionOutcome.ABORTED)
            self._render()

    async def redraw(self) -> None:
        async with self._lock:
            self._render()

    def _finish(self, outcome: SessionOutcome) -> None:
        self._phase = SessionPhase.FINISHED
        self._outcome = outcome
        if outcome is SessionOutcome.ABORTED:
            logger.warning("Session aborted: %s", self.abort_reason)
        else:
            logger.info("Session finished: %s", outcome.name)

    def _render(self) -> None:
        self._sink.render(self.snapshot())

    @abstractmethod
    def _first_phase(self) -> SessionPhase:
        ...

    @abstractmethod
    def _apply(self, intent: object) -> tuple[Outbound, ...]:
        ...

    @abstractmethod
    def input_intent(self, digit: int) -> object:
        """Map a pressed digit key to a local intent.

        Raises LocalInputRejected if the digit means nothing in this game.
        """
        ...

    @abstractmethod
    def snapshot(self) -> object:
        ...

    @abstractmethod
    async def exchange(
        self,
        turns: TurnChannel,
        next_local: Callable[[], Awaitable[tuple[Outbound, ...]]],
    ) -> None:
        """Drive the wire protocol until the game is over.

        Runs on the network loop after the handshake. `next_local` waits
        for the outbound messages produced by the next accepted local intent.
        """
        ...
