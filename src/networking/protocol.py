"""Wire protocol definitions.

There is no framing: every phase of a session carries a fixed number of
bytes, and both peers know from the protocol order which phase comes next.

    Phase            Sender   Bytes
    HANDSHAKE        client   1       session-start marker, value ignored
    MOVE             mover    1       Tic-Tac-Toe cell index 0..8
    RPS_COMMIT       client   17      encrypted guess
    RPS_PLAINTEXT    server   1       guess value 0/1/2, sent in clear
    RPS_KEY          client   32      ChaCha20-Poly1305 key
    RPS_NONCE        client   12      ChaCha20-Poly1305 nonce
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

from src.config import CIPHERTEXT_SIZE, KEY_SIZE, NONCE_SIZE


class Role(Enum):
    """Fixed per session; decides who opens the exchange."""
    SERVER = "server"  # accepts the connection, places first
    CLIENT = "client"  # opens the connection, sends the handshake marker

    @property
    def moves_first(self) -> bool:
        return self is Role.SERVER


class WirePhase(IntEnum):
    HANDSHAKE = 1
    MOVE = 2
    RPS_COMMIT = 3
    RPS_PLAINTEXT = 4
    RPS_KEY = 5
    RPS_NONCE = 6


PHASE_SIZES: dict[WirePhase, int] = {
    WirePhase.HANDSHAKE: 1,
    WirePhase.MOVE: 1,
    WirePhase.RPS_COMMIT: CIPHERTEXT_SIZE,
    WirePhase.RPS_PLAINTEXT: 1,
    WirePhase.RPS_KEY: KEY_SIZE,
    WirePhase.RPS_NONCE: NONCE_SIZE,
}


@dataclass(frozen=True, slots=True)
class RevealMessage:
    """The opening half of a commitment, sent by the client."""
    key: bytes
    nonce: bytes
