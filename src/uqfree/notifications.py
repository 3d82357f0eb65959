"""Push-event handling.

The remote service reports request outcomes in two ways, both posted to the
service provider's web endpoints:

- a *notification* names an object that changed (``{"notification":
  {"type", "uuid"}}``); the handler fetches that object, bypassing the cache.
- a *callback* carries the changed object itself (``{"callback": {...}}``);
  the handler writes it to the object cache.

Either way, if the matching request object is still alive in a
``RequestRegistry``, the record is applied to it through ``apply``, the same
idempotent path used by polling.

Example:
    >>> registry = RequestRegistry()
    >>> request = asset.sign(b"payload")
    >>> registry.register(request)
    >>> handler = NotificationHandler(transport, registry=registry)
    >>> handler.handle(request_body)   # in the web handler
    >>> request.is_accepted()
    True
"""

from __future__ import annotations

import json
import weakref
from threading import Lock
from typing import Any, Mapping, Optional, Union

from uqfree.asset import Asset
from uqfree.errors import DecodeError, UnsupportedObjectTypeError
from uqfree.models.base import decode_record
from uqfree.models.enums import ObjectType
from uqfree.models.records import CallbackEnvelope, NotificationEnvelope
from uqfree.observability import get_logger
from uqfree.protocol.decrypt import DecryptRequest
from uqfree.protocol.request import AssetRequest
from uqfree.protocol.sign import AuthenticateRequest, SignRequest
from uqfree.transport.base import ObjectCache, Transport

logger = get_logger(__name__)

REQUEST_TYPES: dict[ObjectType, type[AssetRequest]] = {
    ObjectType.AUTHENTICATE: AuthenticateRequest,
    ObjectType.SIGN: SignRequest,
    ObjectType.DECRYPT: DecryptRequest,
}

RemoteObject = Union[Asset, AssetRequest]


def object_type(kind: str) -> ObjectType:
    """Resolve a remote type name.

    Raises:
        UnsupportedObjectTypeError: If the type is not handled by this client
    """
    try:
        return ObjectType(kind)
    except ValueError as e:
        raise UnsupportedObjectTypeError(kind) from e


def create_object_by_type(kind: str, uuid: str, transport: Transport) -> RemoteObject:
    """Build (but do not fetch) the local object for a remote type and id."""
    resolved = object_type(kind)
    if resolved is ObjectType.ASSET:
        return Asset(uuid, transport)
    return REQUEST_TYPES[resolved](transport, uuid=uuid)


def _load_body(body: Union[str, bytes, Mapping[str, Any]], object_name: str) -> Mapping[str, Any]:
    if isinstance(body, (str, bytes)):
        try:
            body = json.loads(body)
        except ValueError as e:
            raise DecodeError(object_name, f"cannot decode JSON payload: {e}") from e
    if not isinstance(body, Mapping):
        raise DecodeError(object_name, "payload is not a JSON object")
    return body


class RequestRegistry:
    """Weak map from request id to the live request object.

    Entries disappear with their request, so ephemeral request secrets are
    never kept alive by the registry.
    """

    def __init__(self) -> None:
        self._requests: weakref.WeakValueDictionary[str, AssetRequest] = (
            weakref.WeakValueDictionary()
        )
        self._lock = Lock()

    def register(self, request: AssetRequest) -> None:
        if request.uuid is None:
            raise ValueError("only submitted requests can be registered")
        with self._lock:
            self._requests[request.uuid] = request

    def get(self, uuid: str) -> Optional[AssetRequest]:
        with self._lock:
            return self._requests.get(uuid)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)


class NotificationHandler:
    """Handles notification pushes by re-fetching the named object."""

    def __init__(self, transport: Transport, registry: Optional[RequestRegistry] = None) -> None:
        self._transport = transport
        self._registry = registry

    def handle(self, body: Union[str, bytes, Mapping[str, Any]]) -> RemoteObject:
        """Process a notification body and return the refreshed object.

        Raises:
            DecodeError: If the body is not a notification
            UnsupportedObjectTypeError: If the object type is unknown
            ProtocolError: If fetching the object fails
        """
        envelope = decode_record(NotificationEnvelope, _load_body(body, "NotificationEnvelope"))
        target = envelope.notification
        resolved = object_type(target.type)
        logger.info("notification.received", kind=target.type, uuid=target.uuid)

        live = self._registry.get(target.uuid) if self._registry is not None else None
        if live is not None and live.kind is resolved:
            live.refresh(force=True)
            return live

        obj = create_object_by_type(target.type, target.uuid, self._transport)
        obj.refresh(force=True)
        return obj


class CallbackHandler:
    """Handles callback pushes by caching the carried record."""

    def __init__(
        self, cache: Optional[ObjectCache] = None, registry: Optional[RequestRegistry] = None
    ) -> None:
        self._cache = cache
        self._registry = registry

    def handle(self, body: Union[str, bytes, Mapping[str, Any]]) -> dict[str, Any]:
        """Process a callback body and return the carried record.

        Raises:
            DecodeError: If the body is not a callback
            UnsupportedObjectTypeError: If the object type is unknown
        """
        envelope = decode_record(CallbackEnvelope, _load_body(body, "CallbackEnvelope"))
        record = envelope.callback
        resolved = object_type(record["type"])
        logger.info("callback.received", kind=record["type"], uuid=record["uuid"])

        if self._cache is not None:
            self._cache.write(record["type"], record["uuid"], record)

        live = self._registry.get(record["uuid"]) if self._registry is not None else None
        if live is not None and live.kind is resolved:
            live.apply(record)
        return record
