"""Tests for decoding remote records."""

import logging
from datetime import datetime

import pytest

from uqfree.errors import DecodeError
from uqfree.models.base import decode_record
from uqfree.models.enums import AssetState, RequestState
from uqfree.models.records import (
    AssetRecord,
    AssetRequestRecord,
    CallbackEnvelope,
    NotificationEnvelope,
)

SIGN_RECORD = {"type": "sign", "uuid": "r-1", "status_code": 1}


class TestDecodeRecord:
    def test_asset_record(self) -> None:
        record = decode_record(
            AssetRecord,
            {
                "type": "asset",
                "uuid": "a-1",
                "status_code": 1,
                "public_key": "-----BEGIN RSA PUBLIC KEY-----...",
                "created_at": "2024-03-01T10:00:00+00:00",
            },
        )

        assert record.status_code is AssetState.ACTIVE
        assert isinstance(record.created_at, datetime)

    def test_missing_fields_are_listed(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_record(AssetRequestRecord, {"status_code": 2})

        assert sorted(exc_info.value.missing) == ["type", "uuid"]
        assert exc_info.value.object_type == "AssetRequestRecord"

    def test_wrong_type_is_decode_error(self) -> None:
        with pytest.raises(DecodeError, match="invalid field value"):
            decode_record(AssetRequestRecord, {"type": "sign", "uuid": "r-1", "status_code": 99})

    def test_non_object_payload(self) -> None:
        with pytest.raises(DecodeError, match="expected an object"):
            decode_record(AssetRecord, ["asset"])  # type: ignore[arg-type]

    def test_unknown_fields_are_kept_and_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            record = decode_record(AssetRequestRecord, {**SIGN_RECORD, "color": "blue"})

        assert record.model_extra == {"color": "blue"}
        assert "remote.unknown_fields" in caplog.text
        assert "color" in caplog.text


class TestAssetRequestRecord:
    def test_status_code_is_decoded(self) -> None:
        record = decode_record(AssetRequestRecord, SIGN_RECORD)
        assert record.status_code is RequestState.CREATED

    def test_status_code_is_required(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_record(AssetRequestRecord, {"type": "sign", "uuid": "r-1", "signature": "00ff"})

        assert exc_info.value.missing == ["status_code"]

    def test_signature_is_hex_decoded(self) -> None:
        record = decode_record(AssetRequestRecord, {**SIGN_RECORD, "signature": "00ff10"})
        assert record.signature == b"\x00\xff\x10"

    def test_empty_signature_is_none(self) -> None:
        record = decode_record(AssetRequestRecord, {**SIGN_RECORD, "signature": ""})
        assert record.signature is None

    def test_invalid_hex_signature(self) -> None:
        with pytest.raises(DecodeError):
            decode_record(AssetRequestRecord, {**SIGN_RECORD, "signature": "zz"})


class TestEnvelopes:
    def test_notification(self) -> None:
        envelope = decode_record(
            NotificationEnvelope, {"notification": {"type": "sign", "uuid": "r-1"}}
        )
        assert envelope.notification.uuid == "r-1"

    def test_callback_requires_type_and_uuid(self) -> None:
        with pytest.raises(DecodeError):
            decode_record(CallbackEnvelope, {"callback": {"type": "sign"}})

    def test_missing_envelope_member(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            decode_record(NotificationEnvelope, {"callback": {}})
        assert exc_info.value.missing == ["notification"]
