"""Transport and cache interfaces.

The protocol layer talks to the remote custodian service only through
``Transport``. Implementations return the decoded JSON object of the remote
record (at least ``type`` and ``uuid``) or raise ``ProtocolError``.
"""

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from uqfree.models.enums import ObjectType


@runtime_checkable
class Transport(Protocol):
    """Create and fetch remote objects."""

    def create(self, kind: ObjectType, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Create a new remote object of ``kind``; returns the created record."""
        ...

    def fetch(self, kind: ObjectType, uuid: str, *, force: bool = False) -> dict[str, Any]:
        """Load a remote object. ``force`` bypasses any read-through cache."""
        ...


@runtime_checkable
class ObjectCache(Protocol):
    """Read-through cache of remote records keyed by ``(kind, uuid)``.

    ``read`` returns None on a miss.
    """

    def read(self, kind: str, uuid: str) -> Optional[dict[str, Any]]: ...

    def write(self, kind: str, uuid: str, data: Mapping[str, Any]) -> None: ...
