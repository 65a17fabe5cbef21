"""Send-one / receive-one exchange over a ByteChannel.

TurnChannel knows the role-dependent handshake and the fixed size of every
wire phase, but nothing about what the bytes mean; encoding and decoding is
up to the caller. Every read waits under the session's CancelToken.
"""

from __future__ import annotations

import logging

from src.cancellation import CancelToken
from src.networking.channel import ByteChannel
from src.networking.protocol import PHASE_SIZES, Role, WirePhase
from src.networking.serialization import encode_handshake

logger = logging.getLogger(__name__)


class TurnChannel:
    def __init__(self, channel: ByteChannel, role: Role, cancel: CancelToken) -> None:
        self._channel = channel
        self._role = role
        self._cancel = cancel

    async def handshake(self) -> None:
        """Synchronize session start. Carries no game data.

        The client writes the marker byte; the server waits for it.
        """
        if self._role is Role.CLIENT:
            await self.send(WirePhase.HANDSHAKE, encode_handshake())
        else:
            await self.receive(WirePhase.HANDSHAKE)
        logger.info("Handshake complete (%s)", self._role.value)

    async def send(self, phase: WirePhase, data: bytes) -> None:
        expected = PHASE_SIZES[phase]
        if len(data) != expected:
            raise ValueError(
                f"{phase.name} carries {expected} bytes, got {len(data)}"
            )
        await self._cancel.guard(self._channel.send.write(data))
        logger.debug("Sent %s (%d bytes)", phase.name, len(data))

    async def receive(self, phase: WirePhase) -> bytes:
        """Read exactly the number of bytes `phase` carries."""
        data = await self._cancel.guard(
            self._channel.recv.read_exact(PHASE_SIZES[phase])
        )
        logger.debug("Received %s (%d bytes)", phase.name, len(data))
        return data

    async def close(self) -> None:
        await self._channel.close()
