"""Decrypt requests.

The remote service only exposes a sign primitive, so decryption is emulated:

1. A fresh AES-CBC transport key is generated locally (128 bits by default,
   256 supported).
2. The key and its cipher OID are DER-encoded and RSA-OAEP encrypted with the
   asset public key (``cipher_key``).
3. ``cipher_key`` is submitted together with the ciphertext to decrypt
   (``cipher_data``).
4. The device decrypts ``cipher_data`` with its private key and returns the
   plaintext re-encrypted under the transport key as ``IV || AES-CBC``.
5. Once the request is ACCEPTED, ``plaintext`` unwraps that result.

The transport key is owned by the request object and is never sent in the
clear, persisted or logged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional

from uqfree.crypto.transport_key import TransportKey
from uqfree.errors import DecryptionFailed
from uqfree.models.constants import DEFAULT_TRANSPORT_KEY_BITS
from uqfree.models.enums import ObjectType
from uqfree.observability import get_logger
from uqfree.protocol.request import AssetRequest
from uqfree.transport.base import Transport

if TYPE_CHECKING:
    from uqfree.asset import Asset

logger = get_logger(__name__)


class DecryptRequest(AssetRequest):
    """Decrypt ``cipher_data`` (encrypted to the asset public key) on the device.

    Args:
        transport: Transport to the remote service
        asset: Owning asset (required for a new request)
        cipher_data: The ciphertext to decrypt
        notify: Send a push message to the device
        key_bits: Transport key length, 128 or 256

    Raises:
        UnsupportedKeyLength: If key_bits is not 128 or 256 (before any network call)
    """

    kind: ClassVar[ObjectType] = ObjectType.DECRYPT

    def __init__(
        self,
        transport: Transport,
        asset: Optional[Asset] = None,
        cipher_data: Optional[bytes] = None,
        *,
        notify: bool = True,
        key_bits: int = DEFAULT_TRANSPORT_KEY_BITS,
        uuid: Optional[str] = None,
        asset_uuid: Optional[str] = None,
    ) -> None:
        if uuid is None and (asset is None or cipher_data is None):
            raise ValueError("an asset and cipher_data are required to prepare a new request")
        super().__init__(transport, asset=asset, uuid=uuid, asset_uuid=asset_uuid, notify=notify)
        self._cipher_data = cipher_data
        self._transport_key: Optional[TransportKey] = None
        if uuid is None:
            self._transport_key = TransportKey.generate(key_bits)

    @property
    def key_bits(self) -> Optional[int]:
        return self._transport_key.bits if self._transport_key is not None else None

    def transport_key_cipher(self) -> bytes:
        """The transport key structure, RSA-OAEP encrypted with the asset public key.

        Raises:
            EncryptionError: If the structure does not fit the asset key
        """
        if self._transport_key is None:
            raise DecryptionFailed("transport key is not held by this request object")
        return self.asset.identity.encrypt(self._transport_key.to_der())

    def _payload(self) -> dict[str, Any]:
        assert self._cipher_data is not None
        return {
            "asset_uuid": self.asset_uuid,
            "notify": self.notify,
            "cipher_data": self._cipher_data.hex(),
            "cipher_key": self.transport_key_cipher().hex(),
        }

    @property
    def plaintext(self) -> bytes:
        """The decrypted data.

        Raises:
            NotReadyError: If the request is not ACCEPTED
            DecryptionFailed: If the result cannot be unwrapped
        """
        self._require_accepted()
        if self._transport_key is None:
            raise DecryptionFailed("transport key is not held by this request object")
        if self.result is None:
            raise DecryptionFailed("no result returned", details={"request_id": self.uuid})
        try:
            return self._transport_key.unwrap(self.result)
        except DecryptionFailed:
            logger.warning("request.decryption_failed", request_id=self.uuid)
            raise
