"""Asset request protocols: the generic request lifecycle, sign/authenticate and decrypt."""

from uqfree.protocol.decrypt import DecryptRequest
from uqfree.protocol.request import AssetRequest
from uqfree.protocol.sign import AuthenticateRequest, SignedRequest, SignRequest

__all__ = [
    "AssetRequest",
    "AuthenticateRequest",
    "DecryptRequest",
    "SignRequest",
    "SignedRequest",
]
