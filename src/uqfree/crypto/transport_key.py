"""Ephemeral AES transport key for the decrypt protocol.

The remote service only exposes a sign primitive. To decrypt, the client
hands the device a fresh AES key (wrapped with the asset public key); the
device decrypts the payload with its private key and returns it re-encrypted
under that AES key as ``IV || AES-CBC(plaintext)``.

The key is described to the device as a DER structure::

    TransportKeyInfo ::= SEQUENCE {
        algorithm  SEQUENCE { algorithm OBJECT IDENTIFIER, parameters NULL },
        key        OCTET STRING
    }
"""

from __future__ import annotations

import os
import secrets

from asn1crypto import core
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from uqfree.errors import CryptoFormatError, DecryptionFailed, UnsupportedKeyLength
from uqfree.models.constants import AES_BLOCK_BYTES, AES_CBC_OIDS, DEFAULT_TRANSPORT_KEY_BITS

_OID_TO_BITS = {oid: bits for bits, oid in AES_CBC_OIDS.items()}


class TransportAlgorithm(core.Sequence):
    _fields = [
        ("algorithm", core.ObjectIdentifier),
        ("parameters", core.Null),
    ]


class TransportKeyInfo(core.Sequence):
    _fields = [
        ("algorithm", TransportAlgorithm),
        ("key", core.OctetString),
    ]


def _check_bits(bits: int) -> None:
    if bits not in AES_CBC_OIDS:
        raise UnsupportedKeyLength(bits, supported=sorted(AES_CBC_OIDS))


class TransportKey:
    """AES-CBC key that lives only as long as the owning decrypt request.

    The key bytes never appear in ``repr`` and are never logged.
    """

    def __init__(self, key: bytes) -> None:
        _check_bits(len(key) * 8)
        self._key = key

    @classmethod
    def generate(cls, bits: int = DEFAULT_TRANSPORT_KEY_BITS) -> TransportKey:
        """Create a random key of ``bits`` length.

        Raises:
            UnsupportedKeyLength: If bits is not 128 or 256
        """
        _check_bits(bits)
        return cls(secrets.token_bytes(bits // 8))

    @classmethod
    def from_der(cls, der: bytes) -> TransportKey:
        """Parse a TransportKeyInfo structure (the device side of ``to_der``)."""
        try:
            info = TransportKeyInfo.load(der)
            oid = info["algorithm"]["algorithm"].dotted
            key = info["key"].native
        except (ValueError, TypeError) as e:
            raise CryptoFormatError(
                "Cannot parse transport key structure", details={"cause": str(e)}
            ) from e
        if oid not in _OID_TO_BITS:
            raise CryptoFormatError("Unknown transport cipher OID", details={"oid": oid})
        if len(key) * 8 != _OID_TO_BITS[oid]:
            raise CryptoFormatError(
                "Transport key length does not match cipher OID",
                details={"oid": oid, "bits": len(key) * 8},
            )
        return cls(key)

    def __repr__(self) -> str:
        return f"TransportKey(bits={self.bits})"

    @property
    def bits(self) -> int:
        return len(self._key) * 8

    @property
    def oid(self) -> str:
        return AES_CBC_OIDS[self.bits]

    @property
    def block_length(self) -> int:
        return AES_BLOCK_BYTES

    def to_der(self) -> bytes:
        """DER-encode the algorithm OID and key for the remote device."""
        info = TransportKeyInfo(
            {
                "algorithm": {"algorithm": self.oid, "parameters": core.Null()},
                "key": self._key,
            }
        )
        return info.dump()

    def wrap(self, plaintext: bytes, iv: bytes | None = None) -> bytes:
        """Encrypt ``plaintext`` as ``IV || AES-CBC(PKCS#7(plaintext))``."""
        iv = iv if iv is not None else os.urandom(AES_BLOCK_BYTES)
        if len(iv) != AES_BLOCK_BYTES:
            raise ValueError(f"IV must be {AES_BLOCK_BYTES} bytes")
        padder = sym_padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def unwrap(self, blob: bytes) -> bytes:
        """Decrypt a blob produced by ``wrap``.

        Raises:
            DecryptionFailed: If the blob is truncated or the padding is invalid
        """
        if len(blob) < 2 * AES_BLOCK_BYTES or len(blob) % AES_BLOCK_BYTES:
            raise DecryptionFailed(
                f"result of {len(blob)} bytes is not IV plus whole cipher blocks",
                details={"length": len(blob)},
            )
        iv, ciphertext = blob[:AES_BLOCK_BYTES], blob[AES_BLOCK_BYTES:]
        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = sym_padding.PKCS7(algorithms.AES.block_size).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionFailed("invalid PKCS#7 padding") from e
