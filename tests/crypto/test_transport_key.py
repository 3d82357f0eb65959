"""Tests for the AES-CBC transport key used by decrypt requests."""

import pytest
from asn1crypto import core
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.factories import encrypt_unpadded
from uqfree.crypto.transport_key import TransportKey, TransportKeyInfo
from uqfree.errors import CryptoFormatError, DecryptionFailed, UnsupportedKeyLength
from uqfree.models.constants import AES_CBC_OIDS


class TestGenerate:
    @pytest.mark.parametrize("bits", [128, 256])
    def test_supported_lengths(self, bits: int) -> None:
        key = TransportKey.generate(bits)

        assert key.bits == bits
        assert key.oid == AES_CBC_OIDS[bits]
        assert key.block_length == 16

    @pytest.mark.parametrize("bits", [0, 64, 192, 512])
    def test_unsupported_lengths(self, bits: int) -> None:
        with pytest.raises(UnsupportedKeyLength) as exc_info:
            TransportKey.generate(bits)
        assert exc_info.value.bits == bits
        assert exc_info.value.details["supported"] == [128, 256]

    def test_keys_are_random(self) -> None:
        assert TransportKey.generate().to_der() != TransportKey.generate().to_der()

    def test_repr_hides_key(self) -> None:
        key = TransportKey(b"\x01" * 16)
        assert repr(key) == "TransportKey(bits=128)"


class TestDerStructure:
    def test_to_der_layout(self) -> None:
        key = TransportKey(bytes(range(16)))
        info = TransportKeyInfo.load(key.to_der())

        assert info["algorithm"]["algorithm"].dotted == "2.16.840.1.101.3.4.1.2"
        assert isinstance(info["algorithm"]["parameters"], core.Null)
        assert info["key"].native == bytes(range(16))

    @pytest.mark.parametrize("bits", [128, 256])
    def test_from_der_inverts_to_der(self, bits: int) -> None:
        key = TransportKey.generate(bits)
        parsed = TransportKey.from_der(key.to_der())

        assert parsed.bits == bits
        assert parsed.unwrap(key.wrap(b"payload")) == b"payload"

    def test_from_der_rejects_mismatched_length(self) -> None:
        der = TransportKeyInfo(
            {
                "algorithm": {"algorithm": AES_CBC_OIDS[256], "parameters": core.Null()},
                "key": b"\x00" * 16,
            }
        ).dump()
        with pytest.raises(CryptoFormatError, match="does not match"):
            TransportKey.from_der(der)

    def test_from_der_rejects_unknown_oid(self) -> None:
        der = TransportKeyInfo(
            {
                "algorithm": {"algorithm": "1.2.3.4", "parameters": core.Null()},
                "key": b"\x00" * 16,
            }
        ).dump()
        with pytest.raises(CryptoFormatError, match="Unknown transport cipher OID"):
            TransportKey.from_der(der)


class TestWrap:
    def test_layout_is_iv_then_blocks(self) -> None:
        key = TransportKey.generate()
        blob = key.wrap(b"x" * 20, iv=b"\x07" * 16)

        assert blob[:16] == b"\x07" * 16
        assert len(blob) == 16 + 32

    def test_iv_length_checked(self) -> None:
        with pytest.raises(ValueError):
            TransportKey.generate().wrap(b"x", iv=b"short")

    @pytest.mark.parametrize("length", [0, 1, 16, 31])
    def test_unwrap_rejects_truncated(self, length: int) -> None:
        with pytest.raises(DecryptionFailed):
            TransportKey.generate().unwrap(b"\x00" * length)

    @pytest.mark.parametrize("last_byte", [b"\x00", b"\x11"])
    def test_unwrap_rejects_invalid_padding(self, last_byte: bytes) -> None:
        key = TransportKey(b"\x01" * 16)
        blob = encrypt_unpadded(key, b"\x01" * 15 + last_byte)

        with pytest.raises(DecryptionFailed, match="padding"):
            key.unwrap(blob)

    def test_unwrap_accepts_full_padding_block(self) -> None:
        key = TransportKey(b"\x01" * 16)
        blob = encrypt_unpadded(key, b"payload!" * 2 + b"\x10" * 16)

        assert key.unwrap(blob) == b"payload!" * 2

    @settings(max_examples=50, deadline=None)
    @given(plaintext=st.binary(max_size=512), bits=st.sampled_from([128, 256]))
    def test_unwrap_inverts_wrap(self, plaintext: bytes, bits: int) -> None:
        key = TransportKey.generate(bits)
        assert key.unwrap(key.wrap(plaintext)) == plaintext
