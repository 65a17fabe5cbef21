"""Rock/Paper/Scissors session with a commit-reveal exchange.

Phases: AWAITING_HANDSHAKE -> CHOOSING -> COMMITTED -> FINISHED.

Wire order, once per match:

    client -> server   RPS_COMMIT     ciphertext of the client's guess
    server -> client   RPS_PLAINTEXT  server's guess, in clear
    client -> server   RPS_KEY        key
    client -> server   RPS_NONCE      nonce

The server's guess is not committed; only the client is bound by a
commitment. Both peers then resolve the same two guesses locally.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.errors import CryptoFailure, LocalInputRejected, ProtocolViolation
from src.networking.commit_reveal import (
    AuthFailure,
    CommitRevealChoice,
    DecodeError,
    SizeError,
    commit,
    reveal,
)
from src.networking.protocol import RevealMessage, Role, WirePhase
from src.networking.serialization import decode_guess, encode_guess
from src.networking.turn_channel import TurnChannel
from src.session.base import (
    GameSession,
    Outbound,
    RenderSink,
    SessionOutcome,
    SessionPhase,
)
from src.simulation.rps import Guess, Outcome, resolve

logger = logging.getLogger(__name__)

# Keys 1, 2, 3 pick a guess
DIGIT_GUESSES = {1: Guess.ROCK, 2: Guess.PAPER, 3: Guess.SCISSORS}

_OUTCOMES = {
    Outcome.WIN: SessionOutcome.WON,
    Outcome.LOSE: SessionOutcome.LOST,
    Outcome.DRAW: SessionOutcome.DRAW,
}


@dataclass(frozen=True, slots=True)
class LocalGuess:
    guess: Guess


@dataclass(frozen=True, slots=True)
class RemoteGuess:
    """The server's plaintext guess, as seen by the client."""
    guess: Guess


@dataclass(frozen=True, slots=True)
class RemoteCommitment:
    """The client's ciphertext, as seen by the server."""
    ciphertext: bytes


@dataclass(frozen=True, slots=True)
class RemoteReveal:
    """The client's key and nonce, as seen by the server."""
    reveal: RevealMessage


@dataclass(frozen=True, slots=True)
class ChoiceSnapshot:
    role: Role
    phase: SessionPhase
    mine: Guess | None
    theirs: Guess | None
    outcome: SessionOutcome | None = None
    abort_reason: str | None = None


class RockPaperScissorsSession(GameSession):
    def __init__(self, role: Role, sink: RenderSink) -> None:
        super().__init__(role, sink)
        self._mine: Guess | None = None
        self._theirs: Guess | None = None
        self._committed: CommitRevealChoice | None = None  # client only
        self._their_commitment: bytes | None = None        # server only

    def _first_phase(self) -> SessionPhase:
        return SessionPhase.CHOOSING

    def input_intent(self, digit: int) -> LocalGuess:
        try:
            return LocalGuess(DIGIT_GUESSES[digit])
        except KeyError:
            raise LocalInputRejected(f"Key {digit} is not a guess") from None

    def snapshot(self) -> ChoiceSnapshot:
        return ChoiceSnapshot(
            role=self.role,
            phase=self._phase,
            mine=self._mine,
            theirs=self._theirs,
            outcome=self._outcome,
            abort_reason=self.abort_reason,
        )

    def _apply(self, intent: object) -> tuple[Outbound, ...]:
        if isinstance(intent, LocalGuess):
            return self._apply_local(intent.guess)
        if isinstance(intent, RemoteGuess):
            return self._apply_remote_guess(intent.guess)
        if isinstance(intent, RemoteCommitment):
            self._apply_commitment(intent.ciphertext)
            return ()
        if isinstance(intent, RemoteReveal):
            self._apply_reveal(intent.reveal)
            return ()
        raise TypeError(f"Unexpected intent {intent!r}")

    def _apply_local(self, guess: Guess) -> tuple[Outbound, ...]:
        if self._phase is not SessionPhase.CHOOSING:
            raise LocalInputRejected("Guess already submitted")
        self._mine = guess
        self._phase = SessionPhase.COMMITTED
        logger.debug("Local guess locked in")
        if self.role is Role.CLIENT:
            self._committed = commit(guess)
            return (Outbound(WirePhase.RPS_COMMIT, self._committed.ciphertext),)
        return (Outbound(WirePhase.RPS_PLAINTEXT, encode_guess(guess)),)

    def _apply_remote_guess(self, theirs: Guess) -> tuple[Outbound, ...]:
        if self.role is not Role.CLIENT or self._committed is None:
            raise ProtocolViolation("Plaintext guess arrived before our commitment")
        self._resolve(theirs)
        return (
            Outbound(WirePhase.RPS_KEY, self._committed.key),
            Outbound(WirePhase.RPS_NONCE, self._committed.nonce),
        )

    def _apply_commitment(self, ciphertext: bytes) -> None:
        if (
            self.role is not Role.SERVER
            or self._phase is not SessionPhase.COMMITTED
            or self._their_commitment is not None
        ):
            raise ProtocolViolation("Unexpected commitment")
        self._their_commitment = ciphertext

    def _apply_reveal(self, message: RevealMessage) -> None:
        if (
            self.role is not Role.SERVER
            or self._phase is not SessionPhase.COMMITTED
            or self._their_commitment is None
        ):
            raise ProtocolViolation("Reveal arrived out of order")
        try:
            theirs = reveal(self._their_commitment, message.key, message.nonce)
        except (SizeError, AuthFailure) as e:
            raise CryptoFailure(f"Opponent's reveal failed: {e}") from e
        except DecodeError as e:
            raise ProtocolViolation(f"Opponent committed garbage: {e}") from e
        self._resolve(theirs)

    def _resolve(self, theirs: Guess) -> None:
        self._theirs = theirs
        result = resolve(self._mine, theirs)
        logger.info("Guesses: ours %s, theirs %s", self._mine.name, theirs.name)
        self._finish(_OUTCOMES[result])

    async def exchange(
        self,
        turns: TurnChannel,
        next_local: Callable[[], Awaitable[tuple[Outbound, ...]]],
    ) -> None:
        # Both peers lock in their own guess before anything goes on the wire
        (own,) = await next_local()
        if self.role is Role.CLIENT:
            await turns.send(own.phase, own.data)
            data = await turns.receive(WirePhase.RPS_PLAINTEXT)
            try:
                theirs = decode_guess(data)
            except ValueError as e:
                raise ProtocolViolation(str(e)) from e
            for message in await self.submit(RemoteGuess(theirs)):
                await turns.send(message.phase, message.data)
        else:
            ciphertext = await turns.receive(WirePhase.RPS_COMMIT)
            await self.submit(RemoteCommitment(ciphertext))
            await turns.send(own.phase, own.data)
            key = await turns.receive(WirePhase.RPS_KEY)
            nonce = await turns.receive(WirePhase.RPS_NONCE)
            await self.submit(RemoteReveal(RevealMessage(key=key, nonce=nonce)))
