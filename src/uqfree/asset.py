"""Remote assets (key pairs held by a custodian device).

An ``Asset`` is the local handle on a remote key pair: its id, its public key,
and its lifecycle state. All operations that need the private key are
delegated to the device through asset requests.

Example:
    >>> asset = Asset("0b1c...", transport)
    >>> request = asset.sign(b"contract text", resource_uri="https://example.com/doc/1")
    >>> # the device holder approves on their phone
    >>> request.refresh()
    >>> request.signature
    b'...'
"""

from __future__ import annotations

from datetime import datetime
from functools import cached_property
from typing import Mapping, Optional

from uqfree.config import Settings, load_settings
from uqfree.crypto.identity import AssetIdentity
from uqfree.csr import CSRBuilder
from uqfree.errors import CryptoFormatError
from uqfree.models.base import decode_record
from uqfree.models.enums import AssetState, ObjectType
from uqfree.models.records import AssetRecord
from uqfree.observability import get_logger
from uqfree.protocol.decrypt import DecryptRequest
from uqfree.protocol.sign import AuthenticateRequest, SignRequest
from uqfree.transport.base import Transport

logger = get_logger(__name__)


class Asset:
    """Local handle on a remote key pair.

    The public key is fetched on first use unless supplied, and is immutable
    afterwards; only ``state`` follows later fetches.

    Args:
        uuid: Remote asset id
        transport: Transport to the remote service
        public_key: PEM or DER public key, if already known
        settings: Client settings (OAEP MGF1 hash, default transport key length)
    """

    def __init__(
        self,
        uuid: str,
        transport: Transport,
        *,
        public_key: Optional[bytes | str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.uuid = uuid
        self._transport = transport
        self._settings = settings or load_settings()
        if isinstance(public_key, str):
            public_key = public_key.encode("ascii")
        self._public_key: Optional[bytes] = public_key
        self.state: Optional[AssetState] = None
        self.name: Optional[str] = None
        self.status_text: Optional[str] = None
        self.updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        state = self.state.name if self.state is not None else None
        return f"Asset(uuid={self.uuid!r}, state={state})"

    @property
    def transport(self) -> Transport:
        return self._transport

    def refresh(self, force: bool = False) -> Asset:
        """Fetch the asset record and update the local state.

        Raises:
            ProtocolError: If the fetch fails
            DecodeError: If the record is malformed
        """
        data = self._transport.fetch(ObjectType.ASSET, self.uuid, force=force)
        self.apply(data)
        return self

    def apply(self, record: AssetRecord | Mapping[str, object]) -> None:
        if not isinstance(record, AssetRecord):
            record = decode_record(AssetRecord, record)
        if record.public_key:
            received = record.public_key.encode("ascii")
            if self._public_key is None:
                self._public_key = received
            elif received.strip() != self._public_key.strip():
                logger.warning("asset.public_key_changed_ignored", asset_uuid=self.uuid)
        if record.status_code is not None and record.status_code != self.state:
            logger.info(
                "asset.state_changed",
                asset_uuid=self.uuid,
                state=record.status_code.name.lower(),
            )
            self.state = record.status_code
        self.name = record.name or self.name
        self.status_text = record.status_text
        self.updated_at = record.updated_at or self.updated_at

    @property
    def public_key(self) -> bytes:
        """The asset public key, fetching the asset if it is not known yet."""
        if self._public_key is None:
            self.refresh()
        if self._public_key is None:
            raise CryptoFormatError(
                "Asset record carries no public key", details={"asset_uuid": self.uuid}
            )
        return self._public_key

    @cached_property
    def identity(self) -> AssetIdentity:
        """Crypto handle derived from the public key, memoized on this asset."""
        return AssetIdentity(self.public_key, mgf_hash=self._settings.oaep_mgf_hash)

    def encrypt(self, plaintext: bytes) -> bytes:
        """RSA-OAEP encrypt data so that only the device can decrypt it."""
        return self.identity.encrypt(plaintext)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check an RSA PKCS#1 v1.5 SHA-256 signature made by this asset."""
        return self.identity.verify(message, signature)

    def authenticate(self, data: Optional[bytes] = None, notify: bool = True) -> AuthenticateRequest:
        """Ask the device holder to prove control of the asset.

        Args:
            data: Challenge to sign; random if omitted
            notify: Set False to suppress the push message to the device
        """
        request = AuthenticateRequest(self._transport, self, data, notify=notify)
        request.submit()
        return request

    def sign(
        self, data: Optional[bytes] = None, resource_uri: str = "", notify: bool = True
    ) -> SignRequest:
        """Ask the device holder to sign ``data``.

        Args:
            data: The data to sign. If omitted a random 32-byte value is signed,
                which proves key control but binds no payload.
            resource_uri: Optional URL of the document being signed
            notify: Set False to suppress the push message to the device
        """
        request = SignRequest(self._transport, self, data, resource_uri, notify=notify)
        request.submit()
        return request

    def decrypt(
        self, cipher_data: bytes, notify: bool = True, key_bits: Optional[int] = None
    ) -> DecryptRequest:
        """Ask the device to decrypt ``cipher_data`` (encrypted to this asset).

        Args:
            cipher_data: Ciphertext produced by ``encrypt`` (or an equivalent)
            notify: Set False to suppress the push message to the device
            key_bits: Transport key length, defaults to the configured value

        Raises:
            UnsupportedKeyLength: If key_bits is not 128 or 256
        """
        request = DecryptRequest(
            self._transport,
            self,
            cipher_data,
            notify=notify,
            key_bits=key_bits if key_bits is not None else self._settings.transport_key_bits,
        )
        request.submit()
        return request

    def create_csr(self, dn: Mapping[str, str]) -> CSRBuilder:
        """Start a certificate request for this asset with the given subject DN."""
        return CSRBuilder(self, dn)
