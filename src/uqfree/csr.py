"""Certificate signing requests for assets, without the private key.

Crypto libraries expect to hold the private key when producing a CSR, so the
structure is assembled and spliced by hand:

1. Build a PKCS#10 CertificationRequest with the asset public key, the subject
   DN, sha256WithRSAEncryption, and a one-byte placeholder signature.
2. DER-encode it and locate the ``certificationRequestInfo`` bytes (the part
   that is signed) by offset and length in the encoding.
3. Ask the device to sign those bytes (it signs their SHA-256 digest).
4. Once the sign request is accepted and verified, rebuild the structure with
   the real signature and export it.

Example:
    >>> csr = asset.create_csr({"common_name": "My first CSR"})
    >>> csr.request_sign()
    >>> # the device holder approves on their phone
    >>> pem_bytes = csr.get_signed(CSRFormat.PEM)
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Mapping, Optional

from asn1crypto import core, keys, parser, pem
from asn1crypto import csr as asn1_csr
from asn1crypto import x509 as asn1_x509

from uqfree.errors import (
    CryptoFormatError,
    CSRNotSigned,
    CSRVerificationFailed,
    NoPendingSignRequest,
    VerificationError,
    VerificationFailed,
)
from uqfree.models.constants import EMPTY_CSR_SIGNATURE
from uqfree.models.enums import CSRFormat
from uqfree.observability import get_logger
from uqfree.protocol.sign import SignRequest

if TYPE_CHECKING:
    from uqfree.asset import Asset

logger = get_logger(__name__)

PEM_LABEL = "CERTIFICATE REQUEST"

_DN_ATTRIBUTES = (
    "common_name",
    "surname",
    "serial_number",
    "country_name",
    "locality_name",
    "state_or_province_name",
    "street_address",
    "organization_name",
    "organizational_unit_name",
    "title",
    "business_category",
    "postal_code",
    "telephone_number",
    "name",
    "given_name",
    "initials",
    "generation_qualifier",
    "dn_qualifier",
    "pseudonym",
    "email_address",
    "domain_component",
)

# lowercase, underscore-free spelling -> asn1crypto attribute name
_DN_ALIASES: dict[str, str] = {
    **{attr.replace("_", ""): attr for attr in _DN_ATTRIBUTES},
    "cn": "common_name",
    "sn": "surname",
    "c": "country_name",
    "l": "locality_name",
    "st": "state_or_province_name",
    "street": "street_address",
    "o": "organization_name",
    "ou": "organizational_unit_name",
    "dc": "domain_component",
    "emailaddress": "email_address",
}


def normalize_dn(dn: Mapping[str, str]) -> dict[str, str]:
    """Map DN keys (``commonName``, ``CN``, ``common_name``...) to asn1crypto names.

    Raises:
        ValueError: If a key is not a known DN attribute
    """
    result: dict[str, str] = {}
    for key, value in dn.items():
        name = _DN_ALIASES.get(key.replace("_", "").replace("-", "").lower())
        if name is None:
            raise ValueError(f"Unknown distinguished name attribute: {key!r}")
        result[name] = value
    return result


def extract_signing_subject(der: bytes) -> bytes:
    """Return the exact encoded bytes of ``certificationRequestInfo``.

    The span is located by offset and length in ``der``; it is never produced
    by re-serializing a parsed object. The span is then checked against the
    schema decoding and against a fresh DER encoding of itself, so an encoder
    that stops emitting canonical DER is detected instead of yielding a digest
    that no verifier will reproduce.

    Raises:
        CryptoFormatError: If the structure cannot be parsed or the checks fail
    """
    try:
        header = parser.parse(der, strict=True)[3]
        start = len(header)
        length = parser.peek(der[start:])
    except ValueError as e:
        raise CryptoFormatError(
            "Cannot decode CSR structure", details={"cause": str(e)}
        ) from e
    span = der[start : start + length]

    try:
        located = asn1_csr.CertificationRequest.load(der)["certification_request_info"].dump()
        reencoded = asn1_csr.CertificationRequestInfo.load(span).dump(force=True)
    except ValueError as e:
        raise CryptoFormatError(
            "CSR signing subject does not match the schema", details={"cause": str(e)}
        ) from e
    if located != span:
        raise CryptoFormatError(
            "CSR signing subject offset does not match the decoded structure",
            details={"offset": start, "length": length},
        )
    if reencoded != span:
        raise CryptoFormatError(
            "CSR signing subject is not canonical DER",
            details={"offset": start, "length": length},
        )
    return span


class CSRBuilder:
    """Builds a PKCS#10 request for an asset and gets it signed by the device.

    Args:
        asset: The asset whose public key is certified
        dn: Subject distinguished name, e.g. ``{"common_name": "example.com"}``
    """

    def __init__(self, asset: Asset, dn: Optional[Mapping[str, str]] = None) -> None:
        self._asset = asset
        self._dn = normalize_dn(dn or {})
        self._subject = asn1_x509.Name.build(self._dn)
        self._sign: Optional[SignRequest] = None

    def __repr__(self) -> str:
        sign_id = self._sign.uuid if self._sign is not None else None
        return f"CSRBuilder(subject={self._dn!r}, sign_request={sign_id!r})"

    @property
    def sign_request(self) -> Optional[SignRequest]:
        return self._sign

    def _build(self, signature: bytes) -> asn1_csr.CertificationRequest:
        info = asn1_csr.CertificationRequestInfo(
            {
                "version": "v1",
                "subject": self._subject,
                "subject_pk_info": keys.PublicKeyInfo.load(
                    self._asset.identity.subject_public_key_info()
                ),
                "attributes": [],
            }
        )
        return asn1_csr.CertificationRequest(
            {
                "certification_request_info": info,
                "signature_algorithm": {"algorithm": "sha256_rsa", "parameters": core.Null()},
                "signature": signature,
            }
        )

    def _encode(self, signature: bytes) -> bytes:
        return self._build(signature).dump()

    def signing_subject(self) -> bytes:
        """The encoded certificationRequestInfo the device must sign."""
        return extract_signing_subject(self._encode(EMPTY_CSR_SIGNATURE))

    @property
    def digest(self) -> bytes:
        """SHA-256 of the signing subject, the value submitted as fingerprint."""
        return hashlib.sha256(self.signing_subject()).digest()

    def request_sign(self, resource_uri: str = "", notify: bool = True) -> SignRequest:
        """Submit a sign request for the signing subject.

        Raises:
            ProtocolError: If the remote service rejects the request
        """
        subject = self.signing_subject()
        self._sign = self._asset.sign(subject, resource_uri=resource_uri, notify=notify)
        logger.info(
            "csr.sign_requested",
            asset_uuid=self._asset.uuid,
            request_id=self._sign.uuid,
            fingerprint=self._sign.fingerprint,
        )
        return self._sign

    def get_signed(self, format: CSRFormat = CSRFormat.PEM, force_refresh: bool = False) -> bytes:
        """Return the signed CSR.

        Args:
            format: CSRFormat.DER (binary) or CSRFormat.PEM (text, as bytes)
            force_refresh: Bypass the transport cache when refreshing the request

        Raises:
            NoPendingSignRequest: If request_sign() was not called
            CSRNotSigned: If the sign request is not ACCEPTED
            CSRVerificationFailed: If the returned signature does not verify
        """
        if self._sign is None:
            raise NoPendingSignRequest()
        if not self._sign.is_terminal():
            self._sign.refresh(force=force_refresh)
        if not self._sign.is_accepted():
            raise CSRNotSigned(self._sign.uuid, self._sign.state.name.lower())
        try:
            signature = self._sign.signature
        except (VerificationFailed, VerificationError) as e:
            raise CSRVerificationFailed(self._sign.uuid, details={"cause": e.message}) from e

        der = self._encode(signature)
        if CSRFormat(format) is CSRFormat.DER:
            return der
        return pem.armor(PEM_LABEL, der)
