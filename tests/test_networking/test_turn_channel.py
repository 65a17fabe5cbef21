"""Tests for TurnChannel — handshake, fixed-size phases, cancellation."""

import asyncio

import pytest

from src.cancellation import CancelToken
from src.errors import CancelRequested, TransportIoError
from src.networking.channel import loopback_pair
from src.networking.protocol import Role, WirePhase
from src.networking.turn_channel import TurnChannel


def _pair():
    a, b = loopback_pair()
    server = TurnChannel(a, Role.SERVER, CancelToken())
    client = TurnChannel(b, Role.CLIENT, CancelToken())
    return server, client


class TestHandshake:
    def test_client_opens_server_waits(self):
        async def scenario():
            server, client = _pair()
            waiting = asyncio.create_task(server.handshake())
            await asyncio.sleep(0)
            assert not waiting.done()
            await client.handshake()
            await waiting
            await client.send(WirePhase.MOVE, b"\x02")
            assert await server.receive(WirePhase.MOVE) == b"\x02"

        asyncio.run(scenario())

    def test_server_fails_if_client_hangs_up(self):
        async def scenario():
            server, client = _pair()
            await client.close()
            with pytest.raises(TransportIoError):
                await server.handshake()

        asyncio.run(scenario())


class TestExchange:
    def test_move_roundtrip(self):
        async def scenario():
            server, client = _pair()
            await server.send(WirePhase.MOVE, b"\x04")
            assert await client.receive(WirePhase.MOVE) == b"\x04"

        asyncio.run(scenario())

    def test_receive_reads_whole_phase(self):
        async def scenario():
            server, client = _pair()
            await client.send(WirePhase.RPS_KEY, bytes(range(32)))
            await client.send(WirePhase.RPS_NONCE, b"\xaa" * 12)
            assert await server.receive(WirePhase.RPS_KEY) == bytes(range(32))
            assert await server.receive(WirePhase.RPS_NONCE) == b"\xaa" * 12

        asyncio.run(scenario())

    def test_send_rejects_wrong_size(self):
        async def scenario():
            server, _ = _pair()
            with pytest.raises(ValueError):
                await server.send(WirePhase.MOVE, b"\x01\x02")

        asyncio.run(scenario())


class TestCancellation:
    def test_quit_abandons_a_pending_read(self):
        async def scenario():
            a, _ = loopback_pair()
            token = CancelToken()
            turns = TurnChannel(a, Role.SERVER, token)
            read = asyncio.create_task(turns.receive(WirePhase.MOVE))
            await asyncio.sleep(0)
            token.cancel("quit")
            with pytest.raises(CancelRequested):
                await read

        asyncio.run(scenario())

    def test_already_cancelled_never_reads(self):
        async def scenario():
            a, b = loopback_pair()
            token = CancelToken()
            token.cancel()
            turns = TurnChannel(a, Role.SERVER, token)
            await b.send.write(b"\x01")
            with pytest.raises(CancelRequested):
                await turns.receive(WirePhase.MOVE)

        asyncio.run(scenario())
