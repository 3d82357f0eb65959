"""Data models for uqfree.

Enums for the remote object kinds and lifecycle states, and pydantic records
for decoding remote payloads.
"""

from uqfree.models.base import RemoteRecord, UQBaseModel, decode_record
from uqfree.models.enums import AssetState, CSRFormat, ObjectType, RequestState
from uqfree.models.records import (
    AssetRecord,
    AssetRequestRecord,
    CallbackEnvelope,
    NotificationEnvelope,
    ObjectRecord,
    PushTarget,
)

__all__ = [
    "AssetRecord",
    "AssetRequestRecord",
    "AssetState",
    "CSRFormat",
    "CallbackEnvelope",
    "NotificationEnvelope",
    "ObjectRecord",
    "ObjectType",
    "PushTarget",
    "RemoteRecord",
    "RequestState",
    "UQBaseModel",
    "decode_record",
]
