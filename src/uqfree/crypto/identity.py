"""Public-key identity of a remote asset.

An asset's private key never leaves the custodian device. Locally we only hold
the public key and use it to encrypt (RSA-OAEP) towards the device and to
verify (RSA PKCS#1 v1.5, SHA-256) what the device returns.
"""

from __future__ import annotations

from functools import cached_property
from typing import Literal

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, utils
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

from uqfree.errors import CryptoFormatError, EncryptionError, VerificationError
from uqfree.observability import get_logger

logger = get_logger(__name__)

MGFHash = Literal["sha1", "sha256"]

_MGF_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
}


def load_rsa_public_key(data: bytes) -> RSAPublicKey:
    """Parse a PEM (PKCS#1 or SubjectPublicKeyInfo) or DER RSA public key.

    Raises:
        CryptoFormatError: If the data is not a parsable RSA public key
    """
    try:
        if data.lstrip().startswith(b"-----BEGIN"):
            key = serialization.load_pem_public_key(data)
        else:
            key = serialization.load_der_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoFormatError("Cannot parse public key of asset", details={"cause": str(e)}) from e
    if not isinstance(key, RSAPublicKey):
        raise CryptoFormatError(
            "Public key of asset is not an RSA key", details={"key_type": type(key).__name__}
        )
    return key


class AssetIdentity:
    """Holds an asset public key and the crypto handle derived from it.

    The parsed key is computed on first use and memoized on this instance only.

    Example:
        >>> identity = AssetIdentity(pem_bytes)
        >>> ciphertext = identity.encrypt(b"secret")
        >>> identity.verify(b"message", signature)
        True
    """

    def __init__(self, public_key: bytes | str, mgf_hash: MGFHash = "sha1") -> None:
        if isinstance(public_key, str):
            public_key = public_key.encode("ascii")
        if mgf_hash not in _MGF_HASHES:
            raise ValueError(f"Unsupported MGF1 hash: {mgf_hash!r}")
        self._public_key = public_key
        self._mgf_hash = mgf_hash

    @property
    def public_key(self) -> bytes:
        """The stored public key, exactly as received."""
        return self._public_key

    @cached_property
    def cipher(self) -> RSAPublicKey:
        """Parsed RSA handle, used for OAEP encryption and PKCS#1 verification."""
        key = load_rsa_public_key(self._public_key)
        logger.debug("identity.key_loaded", bits=key.key_size)
        return key

    @property
    def modulus_bytes(self) -> int:
        return (self.cipher.key_size + 7) // 8

    @property
    def max_plaintext_length(self) -> int:
        """Largest plaintext RSA-OAEP (SHA-256) can carry for this key."""
        return self.modulus_bytes - 2 * hashes.SHA256.digest_size - 2

    def subject_public_key_info(self) -> bytes:
        """DER-encoded SubjectPublicKeyInfo of the asset key."""
        return self.cipher.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def _oaep(self) -> padding.OAEP:
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=_MGF_HASHES[self._mgf_hash]()),
            algorithm=hashes.SHA256(),
            label=None,
        )

    def encrypt(self, plaintext: bytes) -> bytes:
        """RSA-OAEP encrypt ``plaintext`` with the asset public key.

        Raises:
            EncryptionError: If plaintext exceeds the OAEP capacity of the key
        """
        limit = self.max_plaintext_length
        if len(plaintext) > limit:
            raise EncryptionError(
                f"plaintext of {len(plaintext)} bytes exceeds limit of {limit} bytes",
                details={"length": len(plaintext), "limit": limit},
            )
        try:
            return self.cipher.encrypt(plaintext, self._oaep())
        except ValueError as e:
            raise EncryptionError(str(e)) from e

    def _check_signature_shape(self, signature: bytes) -> None:
        if not signature:
            raise VerificationError("signature is empty")
        if len(signature) != self.modulus_bytes:
            raise VerificationError(
                f"expected {self.modulus_bytes} bytes, got {len(signature)}",
                details={"signature_length": len(signature), "expected": self.modulus_bytes},
            )

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Verify an RSA PKCS#1 v1.5 SHA-256 signature over ``message``.

        Returns:
            True if the signature matches, False if it was evaluated and did not

        Raises:
            VerificationError: If the signature is malformed for this key
        """
        self._check_signature_shape(signature)
        try:
            self.cipher.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True

    def verify_digest(self, digest: bytes, signature: bytes) -> bool:
        """Like ``verify`` but over a precomputed SHA-256 digest."""
        if len(digest) != hashes.SHA256.digest_size:
            raise VerificationError(
                f"digest must be {hashes.SHA256.digest_size} bytes, got {len(digest)}"
            )
        self._check_signature_shape(signature)
        try:
            self.cipher.verify(
                signature, digest, padding.PKCS1v15(), utils.Prehashed(hashes.SHA256())
            )
        except InvalidSignature:
            return False
        return True
