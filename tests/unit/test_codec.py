"""
Unit tests for the fixed-size record codec.
"""

import pytest

from passgen.config import ProtocolConfig
from passgen.errors import CodecError
from passgen.protocol.codec import RecordCodec
from passgen.protocol.messages import MenuMessage, PasswordRequest, PasswordResponse
from passgen.protocol.selectors import Rejection


class TestRecordSizes:
    """Record sizes follow the configured layout."""

    def test_default_sizes(self, codec: RecordCodec):
        assert codec.menu_size == 1024
        assert codec.request_size == 1 + 1024
        assert codec.response_size == 1 + 33 + 1 + 50

    def test_sizes_follow_config(self):
        codec = RecordCodec(ProtocolConfig(menu_size=512, length_field_size=8, password_size=17, error_size=64))
        assert codec.menu_size == 512
        assert codec.request_size == 9
        assert codec.response_size == 1 + 17 + 1 + 64

    def test_encoded_lengths(self, codec: RecordCodec):
        assert len(codec.encode_menu(MenuMessage("hi"))) == codec.menu_size
        assert len(codec.encode_request(PasswordRequest("n", "8"))) == codec.request_size
        assert len(codec.encode_response(PasswordResponse.closing())) == codec.response_size


class TestRoundTrip:
    """Decoding what was encoded gives back the same value."""

    def test_menu(self, codec: RecordCodec, config: ProtocolConfig):
        menu = MenuMessage(config.menu_text)
        assert codec.decode_menu(codec.encode_menu(menu)) == menu

    @pytest.mark.parametrize("request_", [
        PasswordRequest("n", "8"),
        PasswordRequest("S", "abc"),
        PasswordRequest("x", ""),
        PasswordRequest("", "12"),
    ])
    def test_request(self, codec: RecordCodec, request_: PasswordRequest):
        assert codec.decode_request(codec.encode_request(request_)) == request_

    @pytest.mark.parametrize("response", [
        PasswordResponse.success("aB3$eF6&hI9(kL2!nO5^qR8*tU1)wX4@"),
        PasswordResponse.rejected(Rejection.INVALID_LENGTH),
        PasswordResponse.rejected(Rejection.INVALID_TYPE),
        PasswordResponse.closing(),
    ])
    def test_response(self, codec: RecordCodec, response: PasswordResponse):
        assert codec.decode_response(codec.encode_response(response)) == response


class TestLayout:
    """Byte-level layout of the records."""

    def test_request_bytes(self, codec: RecordCodec):
        data = codec.encode_request(PasswordRequest("n", "8"))
        assert data[:3] == b"n8\x00"
        assert data[3:] == b"\x00" * (codec.request_size - 3)

    def test_response_bytes(self, codec: RecordCodec):
        data = codec.encode_response(PasswordResponse.success("123456"))
        assert data[0] == 1            # keep_going
        assert data[1:7] == b"123456"
        assert data[34] == 0           # is_error
        assert data[35:] == b"\x00" * 50

    def test_text_stops_at_null(self, codec: RecordCodec):
        """Bytes after the terminator are ignored."""
        raw = b"s" + b"12\x00junk" + b"\x00" * (codec.request_size - 8)
        assert codec.decode_request(raw) == PasswordRequest("s", "12")


class TestErrors:
    """Structural errors raise CodecError."""

    def test_wrong_record_size(self, codec: RecordCodec):
        with pytest.raises(CodecError):
            codec.decode_request(b"n8")
        with pytest.raises(CodecError):
            codec.decode_response(b"\x00" * (codec.response_size + 1))
        with pytest.raises(CodecError):
            codec.decode_menu(b"")

    def test_password_too_long(self, codec: RecordCodec):
        """33-byte slot holds 32 characters plus terminator."""
        codec.encode_response(PasswordResponse.success("x" * 32))
        with pytest.raises(CodecError):
            codec.encode_response(PasswordResponse.success("x" * 33))

    def test_length_text_too_long(self, codec: RecordCodec):
        with pytest.raises(CodecError):
            codec.encode_request(PasswordRequest("n", "9" * 1024))

    def test_selector_must_be_one_byte(self, codec: RecordCodec):
        with pytest.raises(CodecError):
            codec.encode_request(PasswordRequest("nn", "8"))
        with pytest.raises(CodecError):
            codec.encode_request(PasswordRequest("€", "8"))
