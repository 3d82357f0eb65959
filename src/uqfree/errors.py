"""uqfree Error Taxonomy.

Every exception raised by the client derives from ``UQError`` and carries a
``uq:<area>/<reason>`` code plus a details dict suitable for logging.

Errors fall into three groups:

- Remote errors (``ProtocolError`` and subclasses): the custodian service
  rejected or failed a call. These are never retried automatically.
- Request errors (``NotReadyError``, ``InvalidTransitionError``): a result was
  requested, or a transition attempted, in the wrong lifecycle state.
- Cryptographic errors: either a proof failed (``VerificationFailed``,
  ``DecryptionFailed``, ``CSRVerificationFailed``) or a local precondition was
  violated before anything was sent (``CryptoFormatError``,
  ``UnsupportedKeyLength``, ``EncryptionError``).
"""
from __future__ import annotations

from typing import Any


class UQError(Exception):
    """Base exception for all uqfree errors.

    Attributes:
        code: Error code following the uq:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ProtocolError(UQError):
    """Raised when the remote service rejects or fails a call.

    Attributes:
        status_code: HTTP status (or remote status) if known
        errors: Raw error objects returned by the remote service
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        errors: list[Any] | None = None,
        details: dict[str, Any] | None = None,
        code: str = "uq:remote/protocol_error",
    ) -> None:
        details_dict: dict[str, Any] = {}
        if status_code is not None:
            details_dict["status_code"] = status_code
        if errors:
            details_dict["errors"] = errors
        if details:
            details_dict.update(details)
        super().__init__(code=code, message=message, details=details_dict)
        self.status_code = status_code
        self.errors = errors or []


class TransportError(ProtocolError):
    """Raised when the remote service cannot be reached at all."""

    def __init__(
        self, message: str, url: str | None = None, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            message,
            details={**({"url": url} if url else {}), **(details or {})},
            code="uq:transport/connection_error",
        )
        self.url = url


class DecodeError(UQError):
    """Raised when a remote payload is missing required fields or is malformed.

    Attributes:
        object_type: The record type being decoded
        missing: Names of required fields that were absent
    """

    def __init__(
        self,
        object_type: str,
        reason: str,
        missing: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="uq:remote/decode_error",
            message=f"Cannot decode {object_type}: {reason}",
            details={"object_type": object_type, "missing": missing or [], **(details or {})},
        )
        self.object_type = object_type
        self.missing = missing or []


class UnsupportedObjectTypeError(UQError):
    """Raised when a push event names an object type this client cannot build."""

    def __init__(self, object_type: str) -> None:
        super().__init__(
            code="uq:remote/unsupported_type",
            message=f"Unsupported UQ object type '{object_type}'",
            details={"object_type": object_type},
        )
        self.object_type = object_type


class InvalidTransitionError(UQError):
    """Raised when attempting an invalid asset request state transition.

    Attributes:
        from_state: The current request state
        to_state: The attempted target state
    """

    def __init__(
        self, from_state: str, to_state: str, details: dict[str, Any] | None = None
    ) -> None:
        message = f"Invalid transition from '{from_state}' to '{to_state}'"
        super().__init__(
            code="uq:request/invalid_transition",
            message=message,
            details={"from_state": from_state, "to_state": to_state, **(details or {})},
        )
        self.from_state = from_state
        self.to_state = to_state


class NotReadyError(UQError):
    """Raised when a result is requested before the request was accepted.

    Attributes:
        request_id: UUID of the request (None while still prepared)
        state: Current state name of the request
    """

    def __init__(
        self, request_id: str | None, state: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(
            code="uq:request/not_ready",
            message=f"Asset request {request_id} was not (yet) accepted (state: {state})",
            details={"request_id": request_id, "state": state, **(details or {})},
        )
        self.request_id = request_id
        self.state = state


class VerificationError(UQError):
    """Raised when a signature is malformed and cannot be evaluated at all.

    Distinct from ``VerificationFailed``: this means the bytes are not a
    signature for this key, not that a well-formed signature did not match.
    """

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:crypto/malformed_signature",
            message=f"Malformed signature: {reason}",
            details=details or {},
        )
        self.reason = reason


class VerificationFailed(UQError):
    """Raised when a signature was evaluated and did not verify."""

    def __init__(self, request_id: str | None, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:crypto/verification_failed",
            message=f"Could not verify signature for asset request {request_id}",
            details={"request_id": request_id, **(details or {})},
        )
        self.request_id = request_id


class DecryptionFailed(UQError):
    """Raised when the transport-encrypted result cannot be unwrapped."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:crypto/decryption_failed",
            message=f"Decrypt of payload failed: {reason}",
            details=details or {},
        )
        self.reason = reason


class CSRNotSigned(UQError):
    """Raised when the CSR sign request has not been accepted."""

    def __init__(self, request_id: str | None, state: str) -> None:
        super().__init__(
            code="uq:csr/not_signed",
            message=f"Sign request {request_id} not accepted for CSR (state: {state})",
            details={"request_id": request_id, "state": state},
        )
        self.request_id = request_id
        self.state = state


class CSRVerificationFailed(UQError):
    """Raised when the signature returned for a CSR does not verify."""

    def __init__(self, request_id: str | None, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:csr/verification_failed",
            message=f"Cannot verify signature for CSR (sign request {request_id})",
            details={"request_id": request_id, **(details or {})},
        )
        self.request_id = request_id


class NoPendingSignRequest(UQError):
    """Raised when ``get_signed`` is called before ``request_sign``."""

    def __init__(self) -> None:
        super().__init__(
            code="uq:csr/no_pending_sign_request",
            message="No sign request pending for CSR; call request_sign() first",
        )


class CryptoFormatError(UQError):
    """Raised when key material or an ASN.1 structure cannot be parsed."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:crypto/format_error",
            message=reason,
            details=details or {},
        )
        self.reason = reason


class UnsupportedKeyLength(UQError):
    """Raised when a transport key length has no registered cipher OID.

    Attributes:
        bits: The requested key length in bits
    """

    def __init__(self, bits: int, supported: list[int] | None = None) -> None:
        super().__init__(
            code="uq:crypto/unsupported_key_length",
            message=f"Unsupported key length for decrypt method: {bits} bits",
            details={"bits": bits, "supported": supported or []},
        )
        self.bits = bits


class EncryptionError(UQError):
    """Raised when data cannot be encrypted with the asset public key."""

    def __init__(self, reason: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            code="uq:crypto/encryption_error",
            message=f"Cannot encrypt data with public key: {reason}",
            details=details or {},
        )
        self.reason = reason
