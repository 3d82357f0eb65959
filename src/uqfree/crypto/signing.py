"""Fingerprinting and signature verification for sign/authenticate requests."""

from __future__ import annotations

import hashlib
import secrets
from typing import Protocol

from uqfree.crypto.identity import AssetIdentity
from uqfree.models.constants import RANDOM_DATA_LENGTH


def fingerprint(data: bytes) -> bytes:
    """SHA-256 digest of ``data``, the value the custodian device signs."""
    return hashlib.sha256(data).digest()


def random_data() -> bytes:
    """Random value signed when the caller does not provide data."""
    return secrets.token_bytes(RANDOM_DATA_LENGTH)


class Verifier(Protocol):
    """Anything that can check a returned signature against local data."""

    def verify(self, signature: bytes) -> bool: ...


class SignatureVerifier:
    """Binds an asset identity to the locally held data it must have signed.

    The data is kept private to this object and is excluded from ``repr``.
    """

    def __init__(self, identity: AssetIdentity, data: bytes) -> None:
        self._identity = identity
        self._data = data

    def __repr__(self) -> str:
        return f"SignatureVerifier(data_length={len(self._data)})"

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def fingerprint(self) -> bytes:
        return fingerprint(self._data)

    def verify(self, signature: bytes) -> bool:
        """Return whether ``signature`` is the asset's signature over the data.

        Raises:
            VerificationError: If the signature is malformed
        """
        return self._identity.verify(self._data, signature)
