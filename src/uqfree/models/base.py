"""Base Pydantic model configuration for uqfree models.

Two base classes exist:

- ``UQBaseModel`` for values built locally (settings): frozen, extra fields
  forbidden to catch typos early.
- ``RemoteRecord`` for payloads received from the remote service: frozen, but
  extra fields are retained so that ``decode_record`` can warn about them
  instead of dropping them silently.
"""

from typing import Any, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from uqfree.errors import DecodeError
from uqfree.observability import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound="RemoteRecord")


class UQBaseModel(BaseModel):
    """Base model for locally constructed uqfree values."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        validate_default=True,
    )


class RemoteRecord(BaseModel):
    """Base model for objects decoded from the remote API."""

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
    )


def decode_record(model: type[RecordT], data: Mapping[str, Any]) -> RecordT:
    """Decode a remote payload into ``model``.

    Args:
        model: The RemoteRecord subclass to decode into
        data: The decoded JSON object from the remote service

    Returns:
        The validated record

    Raises:
        DecodeError: If a required field is missing or a field has the wrong type
    """
    if not isinstance(data, Mapping):
        raise DecodeError(model.__name__, f"expected an object, got {type(data).__name__}")
    try:
        record = model.model_validate(dict(data))
    except ValidationError as e:
        missing = [
            ".".join(str(p) for p in err["loc"]) for err in e.errors() if err["type"] == "missing"
        ]
        reason = "missing required field(s)" if missing else "invalid field value(s)"
        raise DecodeError(
            model.__name__,
            reason,
            missing=missing,
            details={"errors": [err["msg"] for err in e.errors()]},
        ) from e

    if record.model_extra:
        logger.warning(
            "remote.unknown_fields",
            record=model.__name__,
            fields=sorted(record.model_extra),
        )
    return record
