"""Bidirectional byte channel between exactly two peers.

The session layer only ever sees a SendHalf and a RecvHalf. Two
implementations are provided:

- asyncio TCP streams (`open_session` / `accept_session`) for real games;
- an in-memory loopback pair (`loopback_pair`) so the whole protocol can be
  exercised in one process without sockets.

Every transport-level failure surfaces as TransportIoError.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from src.errors import TransportIoError

logger = logging.getLogger(__name__)


class SendHalf(ABC):
    """Write direction of a channel."""

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Send `data` to the peer. Raises TransportIoError."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the write direction so the peer observes end-of-stream.

        Idempotent; never raises.
        """
        ...


class RecvHalf(ABC):
    """Read direction of a channel."""

    @abstractmethod
    async def read_exact(self, n: int) -> bytes:
        """Read exactly `n` bytes. Raises TransportIoError on EOF or failure."""
        ...

    @abstractmethod
    async def wait_eof(self) -> None:
        """Discard incoming bytes until the peer closes its write direction."""
        ...


class StreamSendHalf(SendHalf):
    """SendHalf over an asyncio StreamWriter."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        self._closed = False

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise TransportIoError("Write after the send half was closed")
        try:
            self._writer.write(data)
            await self._writer.drain()
        except (ConnectionError, OSError) as e:
            raise TransportIoError(f"Write failed: {e}") from e

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._writer.can_write_eof():
                self._writer.write_eof()
        except (ConnectionError, OSError) as e:
            logger.debug("Ignoring error while closing send half: %s", e)


class StreamRecvHalf(RecvHalf):
    """RecvHalf over an asyncio StreamReader."""

    def __init__(self, reader: asyncio.StreamReader) -> None:
        self._reader = reader

    async def read_exact(self, n: int) -> bytes:
        try:
            return await self._reader.readexactly(n)
        except asyncio.IncompleteReadError as e:
            raise TransportIoError(
                f"Peer closed the channel after {len(e.partial)} of {n} bytes"
            ) from e
        except (ConnectionError, OSError) as e:
            raise TransportIoError(f"Read failed: {e}") from e

    async def wait_eof(self) -> None:
        try:
            while await self._reader.read(4096):
                pass
        except (ConnectionError, OSError) as e:
            logger.debug("Channel broke while waiting for EOF: %s", e)


class LoopbackSendHalf(SendHalf):
    """SendHalf that feeds bytes straight into the peer's StreamReader."""

    def __init__(self, peer_reader: asyncio.StreamReader) -> None:
        self._peer_reader = peer_reader
        self._closed = False

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise TransportIoError("Write after the send half was closed")
        self._peer_reader.feed_data(data)

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._peer_reader.feed_eof()


class ByteChannel:
    """One session's connection: both halves plus the underlying resource."""

    def __init__(
        self,
        send: SendHalf,
        recv: RecvHalf,
        peer_address: tuple[str, int] | None = None,
        release: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.send = send
        self.recv = recv
        self.peer_address = peer_address
        self._release = release

    async def close(self) -> None:
        """Close the send direction first, then release the connection."""
        await self.send.close()
        if self._release is not None:
            release, self._release = self._release, None
            await release()


def _stream_channel(
    reader: asyncio.StreamReader, writer: asyncio.StreamWriter,
) -> ByteChannel:
    peer = writer.get_extra_info("peername")
    peer_address = (peer[0], peer[1]) if peer else None

    async def release() -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            logger.debug("Ignoring error while releasing connection: %s", e)

    return ByteChannel(
        StreamSendHalf(writer), StreamRecvHalf(reader), peer_address, release,
    )


async def open_session(host: str, port: int, timeout: float) -> ByteChannel:
    """Connect to a listening peer (client side)."""
    logger.info("Connecting to %s:%d", host, port)
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(host, port), timeout,
        )
    except asyncio.TimeoutError as e:
        raise TransportIoError(f"Timed out connecting to {host}:{port}") from e
    except (ConnectionError, OSError) as e:
        raise TransportIoError(f"Could not connect to {host}:{port}: {e}") from e
    channel = _stream_channel(reader, writer)
    logger.info("Connected to %s:%d", host, port)
    return channel


async def accept_session(
    port: int,
    host: str = "0.0.0.0",
    on_listening: Callable[[tuple[str, int]], None] | None = None,
) -> ByteChannel:
    """Listen on `port` and return the first incoming connection.

    The listening socket is closed as soon as one peer has connected; later
    connection attempts are refused.
    """
    accepted: asyncio.Future[ByteChannel] = asyncio.get_running_loop().create_future()

    def on_connect(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if accepted.done():
            writer.close()
            return
        accepted.set_result(_stream_channel(reader, writer))

    try:
        server = await asyncio.start_server(on_connect, host, port)
    except OSError as e:
        raise TransportIoError(f"Could not listen on port {port}: {e}") from e

    sockname = server.sockets[0].getsockname()
    address = (sockname[0], sockname[1])
    logger.info("Listening on %s:%d", address[0], address[1])
    if on_listening is not None:
        on_listening(address)
    try:
        channel = await accepted
    finally:
        server.close()
    logger.info("Peer connected from %s", channel.peer_address)
    return channel


def loopback_pair() -> tuple[ByteChannel, ByteChannel]:
    """Two in-memory channels wired to each other.

    Must be called with a running event loop.
    """
    reader_a = asyncio.StreamReader()
    reader_b = asyncio.StreamReader()
    channel_a = ByteChannel(LoopbackSendHalf(reader_b), StreamRecvHalf(reader_a))
    channel_b = ByteChannel(LoopbackSendHalf(reader_a), StreamRecvHalf(reader_b))
    return channel_a, channel_b
