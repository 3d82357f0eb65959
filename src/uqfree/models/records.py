"""Records decoded from remote API payloads.

Every object returned by the remote service carries at least ``type`` and
``uuid``; the remaining fields depend on the object kind. Decoding goes
through ``uqfree.models.base.decode_record``.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from uqfree.models.base import RemoteRecord
from uqfree.models.enums import AssetState, RequestState


class ObjectRecord(RemoteRecord):
    """Fields shared by every remote object."""

    type: str
    uuid: str
    name: Optional[str] = None
    status_text: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AssetRecord(ObjectRecord):
    """A remote key-pair record. Only the public half is ever transferred."""

    status_code: Optional[AssetState] = None
    public_key: Optional[str] = None


class AssetRequestRecord(ObjectRecord):
    """An authenticate, sign or decrypt request as reported by the remote service.

    ``signature`` arrives hex encoded and is exposed as raw bytes. For sign
    and authenticate requests it is an RSA PKCS#1 v1.5 signature; for decrypt
    requests it is ``IV || AES-CBC ciphertext``.
    """

    status_code: RequestState
    asset_uuid: Optional[str] = None
    fingerprint: Optional[str] = None
    signature: Optional[bytes] = None
    nonce: Optional[str] = None
    nonce_formatted: Optional[str] = None
    notify: Optional[bool] = None
    token: Optional[str] = None
    otp: Optional[str] = None
    verified: Optional[bool] = None
    resource_uri: Optional[str] = None

    @field_validator("signature", mode="before")
    @classmethod
    def _decode_hex(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        if isinstance(value, str):
            try:
                return bytes.fromhex(value)
            except ValueError as e:
                raise ValueError(f"signature is not valid hex: {e}") from e
        return value


class PushTarget(RemoteRecord):
    """Object reference carried by a notification."""

    type: str
    uuid: str


class NotificationEnvelope(RemoteRecord):
    """Body of a notification push: names an object that changed."""

    notification: PushTarget


class CallbackEnvelope(RemoteRecord):
    """Body of a callback push: carries the changed object itself."""

    callback: dict[str, Any] = Field(...)

    @field_validator("callback")
    @classmethod
    def _require_identity(cls, value: dict[str, Any]) -> dict[str, Any]:
        for field in ("type", "uuid"):
            if field not in value:
                raise ValueError(f"Expected property '{field}' in callback")
        return value
