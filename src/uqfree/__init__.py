"""uqfree: remote-custodian signing, decryption and CSR issuance.

The private key of an asset never leaves the custodian device; this package
only ever holds the public key and drives the device through asset requests.

Public exports:
    Asset: local handle on a remote key pair
    SignRequest / AuthenticateRequest / DecryptRequest: asset requests
    CSRBuilder: certificate requests signed by the device
    HttpTransport: JSON/HTTP transport to the remote API
    NotificationHandler / CallbackHandler: push-event handling
"""

from uqfree.asset import Asset
from uqfree.config import Settings, load_settings
from uqfree.csr import CSRBuilder
from uqfree.models.enums import AssetState, CSRFormat, ObjectType, RequestState
from uqfree.notifications import CallbackHandler, NotificationHandler, RequestRegistry
from uqfree.protocol import AssetRequest, AuthenticateRequest, DecryptRequest, SignRequest
from uqfree.transport import HttpTransport, MemoryCache

__version__ = "0.3.0"

__all__ = [
    "Asset",
    "AssetRequest",
    "AssetState",
    "AuthenticateRequest",
    "CSRBuilder",
    "CSRFormat",
    "CallbackHandler",
    "DecryptRequest",
    "HttpTransport",
    "MemoryCache",
    "NotificationHandler",
    "ObjectType",
    "RequestRegistry",
    "RequestState",
    "Settings",
    "SignRequest",
    "load_settings",
]
