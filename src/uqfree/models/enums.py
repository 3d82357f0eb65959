"""Enumerations for uqfree.

This module defines all enum types used by the client to ensure
type safety and prevent magic numbers on the wire.
"""

from enum import Enum, IntEnum


class ObjectType(str, Enum):
    """Remote object kinds, as used in API paths and push events.

    Example:
        >>> ObjectType("sign")
        <ObjectType.SIGN: 'sign'>
    """

    ASSET = "asset"
    AUTHENTICATE = "authenticate"
    SIGN = "sign"
    DECRYPT = "decrypt"


class AssetState(IntEnum):
    """Lifecycle states of a remote asset (key pair)."""

    CREATED = 0
    ACTIVE = 1
    INVALIDATED = 2
    UNLOCKED = 3
    LOCKED = 4
    DESTROYED = 5


class RequestState(IntEnum):
    """Asset request lifecycle states.

    Requests start in PREPARED locally, move to CREATED once the remote
    service accepted the submission, and end in one of the terminal states.

    Example:
        >>> RequestState.ACCEPTED.is_terminal()
        True
        >>> RequestState.CREATED.is_terminal()
        False
    """

    PREPARED = 0
    CREATED = 1
    ACCEPTED = 2
    REJECTED = 3
    EXPIRED = 4
    FAILED = 5

    @classmethod
    def terminal_states(cls) -> frozenset["RequestState"]:
        """Return all terminal states."""
        return frozenset({cls.ACCEPTED, cls.REJECTED, cls.EXPIRED, cls.FAILED})

    def is_terminal(self) -> bool:
        """Check if this state represents a terminal state."""
        return self in self.terminal_states()


class CSRFormat(str, Enum):
    """Output encodings for a signed certificate request."""

    DER = "der"
    PEM = "pem"
