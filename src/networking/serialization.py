"""Binary encoding for the fixed-size wire fields.

All encoding uses struct, network byte order. This module is the only place
where guesses and cells turn into integers and back.
"""

from __future__ import annotations

import struct

from src.config import GRID_CELLS, HANDSHAKE_MARKER
from src.simulation.rps import Guess

U8 = struct.Struct("!B")

GUESS_CODES: dict[Guess, int] = {
    Guess.ROCK: 0,
    Guess.PAPER: 1,
    Guess.SCISSORS: 2,
}
_GUESS_BY_CODE = {code: guess for guess, code in GUESS_CODES.items()}


def _decode_u8(data: bytes) -> int:
    if len(data) != U8.size:
        raise ValueError(f"Expected 1 byte, got {len(data)}")
    (value,) = U8.unpack(data)
    return value


# --- Handshake ---

def encode_handshake() -> bytes:
    return U8.pack(HANDSHAKE_MARKER)


# --- Tic-Tac-Toe move ---

def encode_cell_index(index: int) -> bytes:
    if not 0 <= index < GRID_CELLS:
        raise ValueError(f"Cell index {index} out of range")
    return U8.pack(index)


def decode_cell_index(data: bytes) -> int:
    """Decode a move byte. Raises ValueError if it is not a cell 0..8."""
    index = _decode_u8(data)
    if index >= GRID_CELLS:
        raise ValueError(f"Cell index {index} out of range")
    return index


# --- Guess ---

def encode_guess(guess: Guess) -> bytes:
    return U8.pack(GUESS_CODES[guess])


def decode_guess(data: bytes) -> Guess:
    """Decode a guess byte. Raises ValueError unless it is 0, 1 or 2."""
    code = _decode_u8(data)
    try:
        return _GUESS_BY_CODE[code]
    except KeyError:
        raise ValueError(f"Invalid guess code {code}") from None
