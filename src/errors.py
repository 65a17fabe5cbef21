"""Session-level exception hierarchy.

Every failure that can end a session is one of these. The session is the
unit of failure: nothing below it retries.
"""

from __future__ import annotations


class PeerDuelError(Exception):
    """Base exception for all peerduel session errors."""


class TransportIoError(PeerDuelError):
    """The byte channel failed to read or write, or closed early."""


class ProtocolViolation(PeerDuelError):
    """The peer sent bytes that break the wire protocol."""


class CryptoFailure(PeerDuelError):
    """A commit-reveal opening failed authentication or had the wrong size."""


class LocalInputRejected(PeerDuelError):
    """A local move was invalid. Recoverable: the player is re-prompted."""


class CancelRequested(PeerDuelError):
    """The local player quit. Ends the session without blaming the peer."""
