"""Commit-reveal encoding of a simultaneous choice.

A guess is committed by encrypting its one-byte wire encoding with
ChaCha20-Poly1305 under a fresh key and nonce. The ciphertext binds the
sender to the guess without disclosing it; handing over key and nonce later
opens the commitment, and the Poly1305 tag proves the opening matches what
was committed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from src.config import KEY_SIZE, NONCE_SIZE
from src.networking.serialization import decode_guess, encode_guess
from src.simulation.rps import Guess


class RevealError(ValueError):
    """A commitment could not be opened."""


class SizeError(RevealError):
    """Key or nonce has the wrong length."""


class AuthFailure(RevealError):
    """The ciphertext does not authenticate under the given key and nonce."""


class DecodeError(RevealError):
    """The decrypted payload is not a single valid guess byte."""


@dataclass(frozen=True, slots=True)
class CommitRevealChoice:
    """A committed guess. Only `ciphertext` may leave the peer before reveal."""
    ciphertext: bytes
    key: bytes
    nonce: bytes


def commit(choice: Guess) -> CommitRevealChoice:
    """Encrypt `choice` under a freshly generated key and nonce."""
    key = ChaCha20Poly1305.generate_key()
    nonce = os.urandom(NONCE_SIZE)
    ciphertext = ChaCha20Poly1305(key).encrypt(nonce, encode_guess(choice), None)
    return CommitRevealChoice(ciphertext=ciphertext, key=key, nonce=nonce)


def reveal(ciphertext: bytes, key: bytes, nonce: bytes) -> Guess:
    """Open a commitment.

    Raises:
        SizeError: key is not 32 bytes or nonce is not 12 bytes.
        AuthFailure: decryption or tag verification failed.
        DecodeError: plaintext is not exactly one byte holding 0, 1 or 2.
    """
    if len(key) != KEY_SIZE or len(nonce) != NONCE_SIZE:
        raise SizeError(
            f"Expected {KEY_SIZE}-byte key and {NONCE_SIZE}-byte nonce, "
            f"got {len(key)} and {len(nonce)}"
        )
    try:
        plaintext = ChaCha20Poly1305(key).decrypt(nonce, ciphertext, None)
    except InvalidTag:
        raise AuthFailure("Commitment does not match the revealed key") from None
    try:
        return decode_guess(plaintext)
    except ValueError as e:
        raise DecodeError(str(e)) from None
