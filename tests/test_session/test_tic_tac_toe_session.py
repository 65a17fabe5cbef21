"""Tests for the Tic-Tac-Toe session state machine."""

import asyncio

import pytest

from src.errors import LocalInputRejected, ProtocolViolation
from src.networking.protocol import WirePhase
from src.session.base import Outbound, SessionOutcome, SessionPhase
from src.session.tic_tac_toe import LocalPlacement, RemotePlacement
from src.simulation.grid import Field


def _run(coro):
    return asyncio.run(coro)


class TestStart:
    def test_server_moves_first(self, ttt_server, sink):
        _run(ttt_server.start())
        assert ttt_server.phase is SessionPhase.LOCAL_TURN
        assert sink.last.local_turn
        assert len(sink.snapshots) == 1

    def test_client_waits(self, ttt_client, sink):
        _run(ttt_client.start())
        assert ttt_client.phase is SessionPhase.REMOTE_TURN
        assert not sink.last.local_turn

    def test_cannot_start_twice(self, ttt_server):
        async def scenario():
            await ttt_server.start()
            with pytest.raises(RuntimeError):
                await ttt_server.start()

        _run(scenario())

    def test_snapshot_before_start(self, ttt_server):
        snap = ttt_server.snapshot()
        assert snap.phase is SessionPhase.AWAITING_HANDSHAKE
        assert snap.cells == (Field.EMPTY,) * 9
        assert snap.outcome is None


class TestLocalMoves:
    def test_accepted_move_goes_on_the_wire(self, ttt_server, sink):
        async def scenario():
            await ttt_server.start()
            out = await ttt_server.submit(LocalPlacement(4))
            assert out == (Outbound(WirePhase.MOVE, b"\x04"),)
            assert ttt_server.phase is SessionPhase.REMOTE_TURN
            assert sink.last.cells[4] is Field.SELF

        _run(scenario())

    def test_out_of_turn_rejected_without_render(self, ttt_client, sink):
        async def scenario():
            await ttt_client.start()
            with pytest.raises(LocalInputRejected):
                await ttt_client.submit(LocalPlacement(0))
            assert len(sink.snapshots) == 1
            assert ttt_client.grid.cells == (Field.EMPTY,) * 9

        _run(scenario())

    @pytest.mark.parametrize("digit", [0, 10])
    def test_digit_outside_grid_rejected(self, ttt_server, digit):
        async def scenario():
            await ttt_server.start()
            with pytest.raises(LocalInputRejected):
                await ttt_server.submit(ttt_server.input_intent(digit))
            assert ttt_server.phase is SessionPhase.LOCAL_TURN

        _run(scenario())

    def test_occupied_cell_rejected(self, ttt_server):
        async def scenario():
            await ttt_server.start()
            await ttt_server.submit(LocalPlacement(0))
            await ttt_server.submit(RemotePlacement(4))
            with pytest.raises(LocalInputRejected):
                await ttt_server.submit(LocalPlacement(4))
            assert ttt_server.phase is SessionPhase.LOCAL_TURN

        _run(scenario())

    def test_keys_map_to_cells(self, ttt_server):
        assert ttt_server.input_intent(1) == LocalPlacement(0)
        assert ttt_server.input_intent(9) == LocalPlacement(8)


class TestRemoteMoves:
    def test_remote_move_hands_turn_back(self, ttt_client, sink):
        async def scenario():
            await ttt_client.start()
            assert await ttt_client.submit(RemotePlacement(8)) == ()
            assert ttt_client.phase is SessionPhase.LOCAL_TURN
            assert sink.last.cells[8] is Field.OPPONENT

        _run(scenario())

    def test_remote_out_of_turn_is_violation(self, ttt_server):
        async def scenario():
            await ttt_server.start()
            with pytest.raises(ProtocolViolation):
                await ttt_server.submit(RemotePlacement(0))
            assert ttt_server.grid.cells[0] is Field.EMPTY

        _run(scenario())

    def test_remote_onto_occupied_cell_is_violation(self, ttt_server):
        async def scenario():
            await ttt_server.start()
            await ttt_server.submit(LocalPlacement(2))
            with pytest.raises(ProtocolViolation):
                await ttt_server.submit(RemotePlacement(2))
            assert ttt_server.grid.cells[2] is Field.SELF
            assert ttt_server.phase is SessionPhase.REMOTE_TURN

        _run(scenario())


class TestGameEnd:
    def test_win_finishes_once(self, ttt_server, sink):
        async def scenario():
            await ttt_server.start()
            for local, remote in ((0, 3), (1, 4)):
                await ttt_server.submit(LocalPlacement(local))
                await ttt_server.submit(RemotePlacement(remote))
            await ttt_server.submit(LocalPlacement(2))

            assert ttt_server.outcome is SessionOutcome.WON
            assert ttt_server.finished
            assert sink.finished_renders() == 1

            with pytest.raises(LocalInputRejected):
                await ttt_server.submit(LocalPlacement(5))
            await ttt_server.abort("late quit")
            assert ttt_server.outcome is SessionOutcome.WON
            assert sink.finished_renders() == 1

        _run(scenario())

    def test_opponent_line_loses(self, ttt_client):
        async def scenario():
            await ttt_client.start()
            for remote, local in ((0, 3), (4, 5)):
                await ttt_client.submit(RemotePlacement(remote))
                await ttt_client.submit(LocalPlacement(local))
            await ttt_client.submit(RemotePlacement(8))
            assert ttt_client.outcome is SessionOutcome.LOST

        _run(scenario())

    def test_abort_mid_game(self, ttt_server, sink):
        async def scenario():
            await ttt_server.start()
            await ttt_server.abort("quit")
            assert ttt_server.outcome is SessionOutcome.ABORTED
            assert sink.last.abort_reason == "quit"
            assert sink.last.outcome is SessionOutcome.ABORTED

        _run(scenario())
