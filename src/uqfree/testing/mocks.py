"""In-memory custodian for uqfree tests.

``MockCustodian`` implements the ``Transport`` interface and plays both the
remote API and the device: it holds a real RSA private key, records every
call, and lets a test decide the outcome of each request (accept, reject,
expire, fail), as a device holder would on their phone.

Features:
    - Request recording (every create and fetch) for later assertion.
    - Device-side accept that produces genuine signatures and decrypt results.
    - Configurable failure for error-path tests.
"""

from __future__ import annotations

import uuid as uuid_lib
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa, utils

from uqfree.asset import Asset
from uqfree.config import Settings
from uqfree.crypto.transport_key import TransportKey
from uqfree.errors import ProtocolError
from uqfree.models.enums import AssetState, ObjectType, RequestState

_MGF_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
}

_REQUIRED_FIELDS: dict[ObjectType, tuple[str, ...]] = {
    ObjectType.AUTHENTICATE: ("asset_uuid", "notify", "fingerprint"),
    ObjectType.SIGN: ("asset_uuid", "resource_uri", "notify", "fingerprint"),
    ObjectType.DECRYPT: ("asset_uuid", "notify", "cipher_data", "cipher_key"),
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MockCustodian:
    """Remote API plus custodian device, in memory.

    Attributes:
        private_key: The device-held RSA private key
        asset_uuid: Id of the single asset served by this custodian
        calls: (operation, kind, uuid-or-payload) tuples for every call received
    """

    def __init__(
        self,
        private_key: Optional[rsa.RSAPrivateKey] = None,
        *,
        mgf_hash: str = "sha1",
    ) -> None:
        self.private_key = private_key or rsa.generate_private_key(
            public_exponent=65537, key_size=2048
        )
        self.mgf_hash = mgf_hash
        self.asset_uuid = str(uuid_lib.uuid4())
        self.calls: list[tuple[str, str, Any]] = []
        self._objects: dict[tuple[str, str], dict[str, Any]] = {}
        self._payloads: dict[str, dict[str, Any]] = {}
        self._failure: Optional[BaseException] = None
        self._objects[(ObjectType.ASSET.value, self.asset_uuid)] = {
            "type": ObjectType.ASSET.value,
            "uuid": self.asset_uuid,
            "name": "mock asset",
            "status_code": int(AssetState.ACTIVE),
            "status_text": "active",
            "public_key": self.public_key_pem.decode("ascii"),
            "created_at": _now(),
            "updated_at": _now(),
        }

    @property
    def public_key_pem(self) -> bytes:
        """PKCS#1 PEM public key, as the remote API serves it."""
        return self.private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.PKCS1,
        )

    @property
    def settings(self) -> Settings:
        return Settings(oaep_mgf_hash=self.mgf_hash)

    def asset(self) -> Asset:
        """An Asset handle bound to this custodian (not yet fetched)."""
        return Asset(self.asset_uuid, self, settings=self.settings)

    @property
    def network_calls(self) -> int:
        return len(self.calls)

    def set_failure(self, exception: Optional[BaseException]) -> None:
        """Raise ``exception`` on the next create/fetch. Clears after raise."""
        self._failure = exception

    def _maybe_fail(self) -> None:
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure

    # Transport interface

    def create(self, kind: ObjectType, payload: Mapping[str, Any]) -> dict[str, Any]:
        kind = ObjectType(kind)
        self.calls.append(("create", kind.value, dict(payload)))
        self._maybe_fail()
        required = _REQUIRED_FIELDS.get(kind)
        if required is None:
            raise ProtocolError(f"cannot create objects of type {kind.value}", status_code=405)
        missing = [f for f in required if f not in payload]
        if missing:
            raise ProtocolError(
                "UQ free API returned error(s)",
                status_code=422,
                errors=[{"field": f, "message": "required"} for f in missing],
            )
        if payload["asset_uuid"] != self.asset_uuid:
            raise ProtocolError(
                "UQ free API returned error(s)",
                status_code=404,
                errors=[{"field": "asset_uuid", "message": "unknown asset"}],
            )

        request_id = str(uuid_lib.uuid4())
        record: dict[str, Any] = {
            "type": kind.value,
            "uuid": request_id,
            "asset_uuid": self.asset_uuid,
            "status_code": int(RequestState.CREATED),
            "status_text": "created",
            "notify": payload["notify"],
            "nonce": f"{int(request_id[:8], 16) % 1_000_000_000:09d}",
            "created_at": _now(),
            "updated_at": _now(),
        }
        if "fingerprint" in payload:
            record["fingerprint"] = payload["fingerprint"]
        if "resource_uri" in payload:
            record["resource_uri"] = payload["resource_uri"]
        self._objects[(kind.value, request_id)] = record
        self._payloads[request_id] = dict(payload)
        return dict(record)

    def fetch(self, kind: ObjectType, uuid: str, *, force: bool = False) -> dict[str, Any]:
        kind = ObjectType(kind)
        self.calls.append(("fetch", kind.value, uuid))
        self._maybe_fail()
        record = self._objects.get((kind.value, uuid))
        if record is None:
            raise ProtocolError(f"{kind.value} {uuid} not found", status_code=404)
        return dict(record)

    # Device side

    def record(self, uuid: str) -> dict[str, Any]:
        """The current remote record of a request."""
        for (kind, object_id), record in self._objects.items():
            if object_id == uuid and kind != ObjectType.ASSET.value:
                return record
        raise KeyError(uuid)

    def payload(self, uuid: str) -> dict[str, Any]:
        """The payload the request was created with."""
        return self._payloads[uuid]

    def _oaep(self) -> padding.OAEP:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=_MGF_HASHES[self.mgf_hash]()),
            algorithm=hashes.SHA256(),
            label=None,
        )

    def transport_key(self, uuid: str) -> TransportKey:
        """The transport key of a decrypt request, as the device unwraps it."""
        cipher_key = bytes.fromhex(self._payloads[uuid]["cipher_key"])
        return TransportKey.from_der(self.private_key.decrypt(cipher_key, self._oaep()))

    def _device_result(self, record: dict[str, Any]) -> bytes:
        payload = self._payloads[record["uuid"]]
        if record["type"] == ObjectType.DECRYPT.value:
            transport_key = self.transport_key(record["uuid"])
            plaintext = self.private_key.decrypt(
                bytes.fromhex(payload["cipher_data"]), self._oaep()
            )
            return transport_key.wrap(plaintext)
        # The device signs the fingerprint it was given, as a SHA-256 digest
        return self.private_key.sign(
            bytes.fromhex(payload["fingerprint"]),
            padding.PKCS1v15(),
            utils.Prehashed(hashes.SHA256()),
        )

    def _finish(self, uuid: str, state: RequestState, text: str) -> dict[str, Any]:
        record = self.record(uuid)
        if record["status_code"] != int(RequestState.CREATED):
            raise ValueError(f"request {uuid} is already finished")
        record["status_code"] = int(state)
        record["status_text"] = text
        record["updated_at"] = _now()
        return dict(record)

    def accept(self, uuid: str) -> dict[str, Any]:
        """Approve a request on the device; returns the updated record."""
        result = self._device_result(self.record(uuid))
        record = self._finish(uuid, RequestState.ACCEPTED, "accepted")
        self.record(uuid)["signature"] = result.hex()
        record["signature"] = result.hex()
        return record

    def reject(self, uuid: str) -> dict[str, Any]:
        return self._finish(uuid, RequestState.REJECTED, "rejected")

    def expire(self, uuid: str) -> dict[str, Any]:
        return self._finish(uuid, RequestState.EXPIRED, "expired")

    def fail(self, uuid: str) -> dict[str, Any]:
        return self._finish(uuid, RequestState.FAILED, "failed")

    def set_signature(self, uuid: str, signature: bytes) -> None:
        """Overwrite the returned result bytes (for tampering tests)."""
        self.record(uuid)["signature"] = signature.hex()
