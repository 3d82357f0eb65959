"""uqfree cryptographic layer.

Everything here works with public key material only:

- identity: AssetIdentity (RSA-OAEP encryption, PKCS#1 v1.5 SHA-256 verification)
- signing: fingerprints and the SignatureVerifier capability
- transport_key: the ephemeral AES key used by the decrypt protocol
"""

from uqfree.crypto.identity import AssetIdentity, load_rsa_public_key
from uqfree.crypto.signing import SignatureVerifier, Verifier, fingerprint, random_data
from uqfree.crypto.transport_key import TransportKey, TransportKeyInfo

__all__ = [
    "AssetIdentity",
    "SignatureVerifier",
    "TransportKey",
    "TransportKeyInfo",
    "Verifier",
    "fingerprint",
    "load_rsa_public_key",
    "random_data",
]
