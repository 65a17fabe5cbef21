"""Tests for command-line address parsing and the exit status of a game."""

import asyncio

import pytest

from src.input.source import QUIT_EVENT, ScriptedMoveSource
from src.main import GAMES, _play, parse_address
from src.networking.channel import loopback_pair
from src.networking.protocol import Role
from tests.harness import RecordingSink


class TestParseAddress:
    def test_host_and_port(self):
        assert parse_address("127.0.0.1:23457") == ("127.0.0.1", 23457)
        assert parse_address("example.org:80") == ("example.org", 80)

    def test_ipv6_keeps_inner_colons(self):
        assert parse_address("::1:23457") == ("::1", 23457)

    @pytest.mark.parametrize("addr", [
        "127.0.0.1", ":23457", "host:", "host:abc", "host:0", "host:65536",
    ])
    def test_invalid(self, addr):
        assert parse_address(addr) is None


class TestExitStatus:
    def test_peer_hangup_exits_nonzero(self):
        async def scenario():
            ours, peer = loopback_pair()
            await peer.close()
            # Quit once our side has hung up too, like a player closing the window
            source = ScriptedMoveSource([peer.recv.wait_eof, QUIT_EVENT])
            return await _play(RecordingSink(), source, "tictactoe", Role.CLIENT, ours)

        assert asyncio.run(scenario()) == 1

    def test_local_quit_exits_zero(self):
        async def scenario():
            ours, _ = loopback_pair()
            source = ScriptedMoveSource([QUIT_EVENT])
            return await _play(RecordingSink(), source, "rps", Role.CLIENT, ours)

        assert asyncio.run(scenario()) == 0


def test_both_games_registered():
    assert set(GAMES) == {"tictactoe", "rps"}
