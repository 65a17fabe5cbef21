"""Tic-Tac-Toe session.

Phases: AWAITING_HANDSHAKE -> LOCAL_TURN <-> REMOTE_TURN -> FINISHED.
The server places first; turns strictly alternate. Each placement travels
as a single cell-index byte.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.errors import LocalInputRejected, ProtocolViolation
from src.networking.protocol import Role, WirePhase
from src.networking.serialization import decode_cell_index, encode_cell_index
from src.networking.turn_channel import TurnChannel
from src.session.base import (
    GameSession,
    Outbound,
    RenderSink,
    SessionOutcome,
    SessionPhase,
)
from src.simulation.grid import Field, GridState, PlacementError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LocalPlacement:
    index: int


@dataclass(frozen=True, slots=True)
class RemotePlacement:
    index: int


@dataclass(frozen=True, slots=True)
class GridSnapshot:
    role: Role
    phase: SessionPhase
    cells: tuple[Field, ...]
    outcome: SessionOutcome | None = None
    abort_reason: str | None = None

    @property
    def local_turn(self) -> bool:
        return self.phase is SessionPhase.LOCAL_TURN


class TicTacToeSession(GameSession):
    def __init__(self, role: Role, sink: RenderSink) -> None:
        super().__init__(role, sink)
        self._grid = GridState(turn=role.moves_first)

    @property
    def grid(self) -> GridState:
        return self._grid

    def _first_phase(self) -> SessionPhase:
        return SessionPhase.LOCAL_TURN if self.role.moves_first else SessionPhase.REMOTE_TURN

    def input_intent(self, digit: int) -> LocalPlacement:
        # Keys 1..9 map to cells 0..8; anything else is rejected by place()
        return LocalPlacement(digit - 1)

    def snapshot(self) -> GridSnapshot:
        return GridSnapshot(
            role=self.role,
            phase=self._phase,
            cells=self._grid.cells,
            outcome=self._outcome,
            abort_reason=self.abort_reason,
        )

    def _apply(self, intent: object) -> tuple[Outbound, ...]:
        if isinstance(intent, LocalPlacement):
            return self._apply_local(intent.index)
        if isinstance(intent, RemotePlacement):
            self._apply_remote(intent.index)
            return ()
        raise TypeError(f"Unexpected intent {intent!r}")

    def _apply_local(self, index: int) -> tuple[Outbound, ...]:
        if self._phase is not SessionPhase.LOCAL_TURN:
            raise LocalInputRejected("Not your turn")
        try:
            self._grid.place(index, Field.SELF)
        except PlacementError as e:
            raise LocalInputRejected(str(e)) from e
        logger.debug("Placed at %d", index)
        self._after_placement(Field.SELF)
        return (Outbound(WirePhase.MOVE, encode_cell_index(index)),)

    def _apply_remote(self, index: int) -> None:
        if self._phase is not SessionPhase.REMOTE_TURN:
            raise ProtocolViolation("Opponent moved out of turn")
        try:
            self._grid.place(index, Field.OPPONENT)
        except PlacementError as e:
            raise ProtocolViolation(f"Opponent sent an invalid move: {e}") from e
        logger.debug("Opponent placed at %d", index)
        self._after_placement(Field.OPPONENT)

    def _after_placement(self, who: Field) -> None:
        if self._grid.is_win(who):
            self._finish(SessionOutcome.WON if who is Field.SELF else SessionOutcome.LOST)
        elif self._grid.is_full():
            self._finish(SessionOutcome.DRAW)
        elif who is Field.SELF:
            self._phase = SessionPhase.REMOTE_TURN
        else:
            self._phase = SessionPhase.LOCAL_TURN

    async def exchange(
        self,
        turns: TurnChannel,
        next_local: Callable[[], Awaitable[tuple[Outbound, ...]]],
    ) -> None:
        # Follows protocol order rather than the current phase: a local move
        # can be applied before this loop gets around to sending it.
        my_turn = self.role.moves_first
        while not self.finished:
            if my_turn:
                for message in await next_local():
                    await turns.send(message.phase, message.data)
            else:
                data = await turns.receive(WirePhase.MOVE)
                try:
                    index = decode_cell_index(data)
                except ValueError as e:
                    raise ProtocolViolation(str(e)) from e
                await self.submit(RemotePlacement(index))
            my_turn = not my_turn
