"""Tests for byte channels — in-memory loopback and TCP on localhost."""

import asyncio

import pytest

from src.errors import TransportIoError
from src.networking.channel import accept_session, loopback_pair, open_session


class TestLoopback:
    def test_bytes_cross_over(self):
        async def scenario():
            a, b = loopback_pair()
            await a.send.write(b"\x01\x02")
            await b.send.write(b"\x03")
            assert await b.recv.read_exact(2) == b"\x01\x02"
            assert await a.recv.read_exact(1) == b"\x03"

        asyncio.run(scenario())

    def test_read_exact_waits_for_all_bytes(self):
        async def scenario():
            a, b = loopback_pair()
            reader = asyncio.create_task(b.recv.read_exact(3))
            await a.send.write(b"\x01")
            await asyncio.sleep(0)
            assert not reader.done()
            await a.send.write(b"\x02\x03")
            assert await reader == b"\x01\x02\x03"

        asyncio.run(scenario())

    def test_close_is_seen_as_eof(self):
        async def scenario():
            a, b = loopback_pair()
            await a.send.write(b"\x05")
            await a.close()
            assert await b.recv.read_exact(1) == b"\x05"
            with pytest.raises(TransportIoError):
                await b.recv.read_exact(1)

        asyncio.run(scenario())

    def test_short_read_before_eof(self):
        async def scenario():
            a, b = loopback_pair()
            await a.send.write(b"\x05")
            await a.send.close()
            with pytest.raises(TransportIoError, match="1 of 4"):
                await b.recv.read_exact(4)

        asyncio.run(scenario())

    def test_write_after_close_fails(self):
        async def scenario():
            a, _ = loopback_pair()
            await a.send.close()
            with pytest.raises(TransportIoError):
                await a.send.write(b"\x00")

        asyncio.run(scenario())

    def test_close_is_idempotent(self):
        async def scenario():
            a, b = loopback_pair()
            await a.close()
            await a.close()
            await b.recv.wait_eof()

        asyncio.run(scenario())


class TestTcp:
    def test_connect_exchange_and_close(self):
        async def scenario():
            listening = asyncio.get_running_loop().create_future()
            accept = asyncio.create_task(
                accept_session(0, host="127.0.0.1", on_listening=listening.set_result)
            )
            _, port = await listening
            client = await open_session("127.0.0.1", port, timeout=5)
            server = await accept
            try:
                assert server.peer_address is not None
                await client.send.write(b"\x00")
                assert await server.recv.read_exact(1) == b"\x00"
                await server.send.write(b"\x04")
                assert await client.recv.read_exact(1) == b"\x04"

                await client.close()
                with pytest.raises(TransportIoError):
                    await server.recv.read_exact(1)
            finally:
                await client.close()
                await server.close()

        asyncio.run(scenario())

    def test_connection_refused(self):
        async def scenario():
            listening = asyncio.get_running_loop().create_future()
            accept = asyncio.create_task(
                accept_session(0, host="127.0.0.1", on_listening=listening.set_result)
            )
            _, port = await listening
            accept.cancel()
            await asyncio.wait({accept})
            with pytest.raises(TransportIoError):
                await open_session("127.0.0.1", port, timeout=5)

        asyncio.run(scenario())
