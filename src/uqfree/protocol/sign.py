"""Sign and authenticate requests.

Both ask the device to sign ``SHA256(data)`` with the asset private key. The
data itself never leaves this process; only its fingerprint is sent. The
returned signature is trusted only after ``verify()`` passes, and a signature
that does not verify raises ``VerificationFailed`` rather than returning False.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Optional

from uqfree.crypto.signing import SignatureVerifier, random_data
from uqfree.errors import VerificationError, VerificationFailed
from uqfree.models.enums import ObjectType
from uqfree.models.records import AssetRequestRecord
from uqfree.observability import get_logger
from uqfree.protocol.request import AssetRequest
from uqfree.transport.base import Transport

if TYPE_CHECKING:
    from uqfree.asset import Asset

logger = get_logger(__name__)


class SignedRequest(AssetRequest):
    """A request whose result is a signature over locally held data.

    Args:
        transport: Transport to the remote service
        asset: Owning asset (required for a new request)
        data: Data to sign; a random 32-byte value is used if omitted. Pass
            the payload explicitly when non-repudiation over it matters.
        notify: Send a push message to the device
        uuid: Id of an existing remote request (no local data is then held)
    """

    def __init__(
        self,
        transport: Transport,
        asset: Optional[Asset] = None,
        data: Optional[bytes] = None,
        *,
        notify: bool = True,
        uuid: Optional[str] = None,
        asset_uuid: Optional[str] = None,
    ) -> None:
        if asset is None and uuid is None:
            raise ValueError("an asset is required to prepare a new request")
        super().__init__(transport, asset=asset, uuid=uuid, asset_uuid=asset_uuid, notify=notify)
        self._verifier: Optional[SignatureVerifier] = None
        if uuid is None:
            assert asset is not None
            self._verifier = SignatureVerifier(
                asset.identity, data if data is not None else random_data()
            )
            self.fingerprint = self._verifier.fingerprint.hex()

    @property
    def data(self) -> Optional[bytes]:
        """The locally held data that was fingerprinted, if this object holds it."""
        return self._verifier.data if self._verifier is not None else None

    def _payload(self) -> dict[str, Any]:
        assert self._verifier is not None
        return {
            "asset_uuid": self.asset_uuid,
            "notify": self.notify,
            "fingerprint": self._verifier.fingerprint.hex(),
        }

    def verify(self) -> bool:
        """Verify the returned signature against the locally held data.

        Returns:
            True (a failed check always raises)

        Raises:
            NotReadyError: If the request is not ACCEPTED
            VerificationError: If no signature or a malformed one was returned,
                or this object does not hold the signed data
            VerificationFailed: If the signature does not verify
        """
        self._require_accepted()
        if self._verifier is None:
            raise VerificationError(
                "no locally held data to verify against", details={"request_id": self.uuid}
            )
        if self.result is None:
            raise VerificationError("no signature returned", details={"request_id": self.uuid})
        if not self._verifier.verify(self.result):
            logger.warning("request.verification_failed", kind=self.kind.value, request_id=self.uuid)
            raise VerificationFailed(self.uuid)
        return True

    @property
    def signature(self) -> bytes:
        """The verified raw signature bytes."""
        self.verify()
        assert self.result is not None
        return self.result


class SignRequest(SignedRequest):
    """Sign a document (or any data) with the asset.

    ``resource_uri`` optionally points the device holder at the resource
    being signed.
    """

    kind: ClassVar[ObjectType] = ObjectType.SIGN

    def __init__(
        self,
        transport: Transport,
        asset: Optional[Asset] = None,
        data: Optional[bytes] = None,
        resource_uri: str = "",
        *,
        notify: bool = True,
        uuid: Optional[str] = None,
        asset_uuid: Optional[str] = None,
    ) -> None:
        super().__init__(
            transport, asset, data, notify=notify, uuid=uuid, asset_uuid=asset_uuid
        )
        self.resource_uri = resource_uri

    def _payload(self) -> dict[str, Any]:
        payload = super()._payload()
        payload["resource_uri"] = self.resource_uri
        return payload

    def _absorb(self, record: AssetRequestRecord) -> None:
        super()._absorb(record)
        if record.resource_uri is not None:
            self.resource_uri = record.resource_uri


class AuthenticateRequest(SignedRequest):
    """Prove the device holder controls the asset by signing a challenge."""

    kind: ClassVar[ObjectType] = ObjectType.AUTHENTICATE
