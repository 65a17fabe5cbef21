"""Shared test fixtures for peerduel."""

from __future__ import annotations

import os

# PyGame must never try to open a real window under test
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest  # noqa: E402

from src.networking.protocol import Role  # noqa: E402
from src.session.rock_paper_scissors import RockPaperScissorsSession  # noqa: E402
from src.session.tic_tac_toe import TicTacToeSession  # noqa: E402
from src.simulation.grid import GridState  # noqa: E402
from tests.harness import RecordingSink  # noqa: E402


@pytest.fixture
def grid() -> GridState:
    """An empty grid with the local peer to move."""
    return GridState(turn=True)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def ttt_server(sink: RecordingSink) -> TicTacToeSession:
    return TicTacToeSession(Role.SERVER, sink)


@pytest.fixture
def ttt_client(sink: RecordingSink) -> TicTacToeSession:
    return TicTacToeSession(Role.CLIENT, sink)


@pytest.fixture
def rps_server(sink: RecordingSink) -> RockPaperScissorsSession:
    return RockPaperScissorsSession(Role.SERVER, sink)


@pytest.fixture
def rps_client(sink: RecordingSink) -> RockPaperScissorsSession:
    return RockPaperScissorsSession(Role.CLIENT, sink)
