"""Runs one session as two cooperating asyncio tasks.

- The input-capture loop turns local events into intents and submits them
  to the session. An accepted move's wire messages go into a one-slot
  handoff queue.
- The network-exchange loop does the handshake and then lets the session
  drive the wire protocol, taking local moves from the handoff queue.

A local quit fires the shared CancelToken; whatever the network loop is
waiting on is abandoned and the session ends as ABORTED. Teardown always
closes the send direction before releasing the connection, on every exit
path including task cancellation.
"""

from __future__ import annotations

import asyncio
import logging

from src.cancellation import CancelToken
from src.config import CLOSE_TIMEOUT_S
from src.errors import (
    CancelRequested,
    CryptoFailure,
    LocalInputRejected,
    PeerDuelError,
    ProtocolViolation,
    TransportIoError,
)
from src.input.source import InputKind, LocalMoveSource
from src.networking.channel import ByteChannel
from src.networking.turn_channel import TurnChannel
from src.session.base import GameSession, Outbound, SessionOutcome

logger = logging.getLogger(__name__)


class SessionCoordinator:
    def __init__(
        self,
        session: GameSession,
        channel: ByteChannel,
        source: LocalMoveSource,
        linger: bool = False,
        close_timeout: float = CLOSE_TIMEOUT_S,
    ) -> None:
        self._session = session
        self._channel = channel
        self._source = source
        self._linger = linger  # keep reading input after the game ends, until quit
        self._close_timeout = close_timeout
        self.cancel = CancelToken()
        # Set when the session was aborted by the peer or the transport, not by us
        self.failure: PeerDuelError | None = None
        self._turns = TurnChannel(channel, session.role, self.cancel)
        self._handoff: asyncio.Queue[tuple[Outbound, ...]] = asyncio.Queue(maxsize=1)

    async def run(self) -> SessionOutcome | None:
        """Play the session to the end and tear the channel down.

        If the task is cancelled or the exchange fails unexpectedly, the
        channel is still torn down and the exception propagates.
        """
        input_task = asyncio.create_task(self._input_loop())
        try:
            try:
                await self._network_loop()
            finally:
                await self._teardown()
            if self._linger:
                await input_task
        finally:
            if not input_task.done():
                self.cancel.cancel("session over")
                await asyncio.wait({input_task})
        return self._session.outcome

    async def _input_loop(self) -> None:
        session = self._session
        while True:
            try:
                event = await self.cancel.guard(self._source.next_event())
            except CancelRequested:
                return
            if event is None:
                self.cancel.cancel("input closed")
                return
            if event.kind is InputKind.QUIT:
                self.cancel.cancel("quit")
                return
            if event.kind is InputKind.REDRAW:
                await session.redraw()
                continue

            try:
                intent = session.input_intent(event.value)
                outbound = await session.submit(intent)
            except LocalInputRejected as e:
                logger.debug("Input rejected: %s", e)
                continue
            if outbound:
                try:
                    await self.cancel.guard(self._handoff.put(outbound))
                except CancelRequested:
                    return

    async def _next_local(self) -> tuple[Outbound, ...]:
        return await self.cancel.guard(self._handoff.get())

    async def _network_loop(self) -> None:
        session = self._session
        try:
            await self._turns.handshake()
            await session.start()
            await session.exchange(self._turns, self._next_local)
        except CancelRequested as e:
            await session.abort(str(e))
        except TransportIoError as e:
            logger.error("Transport failure: %s", e)
            self.failure = e
            await session.abort(f"connection lost ({e})")
        except ProtocolViolation as e:
            logger.error("Protocol violation by peer: %s", e)
            self.failure = e
            await session.abort(f"opponent broke protocol ({e})")
        except CryptoFailure as e:
            logger.error("Commitment check failed: %s", e)
            self.failure = e
            await session.abort(f"opponent's reveal failed ({e})")

    async def _teardown(self) -> None:
        await self._channel.send.close()
        outcome = self._session.outcome
        if outcome is not None and outcome is not SessionOutcome.ABORTED:
            # Finished normally: give the peer a moment to close its side too
            try:
                await asyncio.wait_for(
                    self.cancel.guard(self._channel.recv.wait_eof()),
                    self._close_timeout,
                )
            except asyncio.TimeoutError:
                logger.debug("Peer did not close within %.1fs", self._close_timeout)
            except CancelRequested:
                logger.debug("Quit before the peer closed its side")
        await self._channel.close()
        logger.info("Session closed: %s", outcome.name if outcome else "unfinished")
