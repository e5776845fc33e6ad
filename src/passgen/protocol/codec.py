"""
=============================================================================
FIXED-SIZE RECORD CODEC
=============================================================================

Every message is a fixed-size record. There is NO length prefix and NO
delimiter: a reader knows where a record ends because both peers agree on
the layout in advance (it comes from ProtocolConfig).

=============================================================================
RECORD LAYOUTS (defaults, network byte order, no padding)
=============================================================================

    MENU (1024 bytes)
    ┌──────────────────────────────────────────────┐
    │ text: 1024 bytes, null-terminated, padded    │
    └──────────────────────────────────────────────┘

    REQUEST (1025 bytes)
    ┌──────────┬───────────────────────────────────┐
    │ selector │ length_text: 1024 bytes,          │
    │ 1 byte   │ null-terminated, padded           │
    └──────────┴───────────────────────────────────┘

    RESPONSE (85 bytes)
    ┌───────────┬──────────────┬──────────┬─────────────────┐
    │keep_going │ password     │ is_error │ error_message   │
    │ 1 byte    │ 33 bytes     │ 1 byte   │ 50 bytes        │
    └───────────┴──────────────┴──────────┴─────────────────┘

Booleans are a single byte, 0 or 1. Text is UTF-8 (ASCII in practice);
decoding stops at the first null byte, so garbage after the terminator is
ignored.

=============================================================================
WHAT THE CODEC DOES NOT DO
=============================================================================

The codec only moves bytes. It does not check that a selector is known or
that a length is numeric; that is the validator's job. It DOES refuse
buffers of the wrong size and text that would overflow its slot, since
those are structural errors, not semantic ones.

=============================================================================
"""

import struct
from typing import TYPE_CHECKING

from ..errors import CodecError
from .messages import MenuMessage, PasswordRequest, PasswordResponse

if TYPE_CHECKING:
    from ..config import ProtocolConfig


TEXT_ENCODING = "utf-8"
SELECTOR_ENCODING = "latin-1"


def _encode_text(text: str, capacity: int, field_name: str) -> bytes:
    """Encode text for a null-terminated slot of `capacity` bytes."""
    data = text.encode(TEXT_ENCODING)
    if len(data) >= capacity:
        raise CodecError(
            f"{field_name} is {len(data)} bytes, slot holds {capacity - 1} plus terminator"
        )
    return data  # struct pads the rest with null bytes


def _decode_text(raw: bytes) -> str:
    return raw.split(b"\x00", 1)[0].decode(TEXT_ENCODING, errors="replace")


def _encode_selector(selector: str) -> bytes:
    if selector == "":
        return b"\x00"
    try:
        data = selector.encode(SELECTOR_ENCODING)
    except UnicodeEncodeError as e:
        raise CodecError(f"selector {selector!r} is not a single byte") from e
    if len(data) != 1:
        raise CodecError(f"selector must be exactly one character, got {selector!r}")
    return data


def _decode_selector(raw: bytes) -> str:
    if raw == b"\x00":
        return ""
    return raw.decode(SELECTOR_ENCODING)


class RecordCodec:
    """
    Encodes and decodes the three record types for one record layout.

    The struct layouts are built once from the config, so a codec can be
    shared by every session that uses the same config.

    Usage:
        codec = RecordCodec(config)
        data = codec.encode_request(PasswordRequest("n", "8"))
        assert len(data) == codec.request_size
        request = codec.decode_request(data)
    """

    def __init__(self, config: "ProtocolConfig"):
        self.config = config

        # "!" = network byte order and, just as important, no alignment
        # padding, so the size is exactly the sum of the fields.
        self._menu = struct.Struct(f"!{config.menu_size}s")
        self._request = struct.Struct(f"!c{config.length_field_size}s")
        self._response = struct.Struct(f"!?{config.password_size}s?{config.error_size}s")

    @property
    def menu_size(self) -> int:
        return self._menu.size

    @property
    def request_size(self) -> int:
        return self._request.size

    @property
    def response_size(self) -> int:
        return self._response.size

    def _check_size(self, data: bytes, expected: int, record: str) -> None:
        if len(data) != expected:
            raise CodecError(f"{record} record must be {expected} bytes, got {len(data)}")

    # =========================================================================
    # MENU
    # =========================================================================

    def encode_menu(self, menu: MenuMessage) -> bytes:
        text = _encode_text(menu.text, self.config.menu_size, "menu text")
        return self._menu.pack(text)

    def decode_menu(self, data: bytes) -> MenuMessage:
        self._check_size(data, self.menu_size, "menu")
        (text,) = self._menu.unpack(data)
        return MenuMessage(text=_decode_text(text))

    # =========================================================================
    # REQUEST
    # =========================================================================

    def encode_request(self, request: PasswordRequest) -> bytes:
        return self._request.pack(
            _encode_selector(request.selector),
            _encode_text(request.length_text, self.config.length_field_size, "length text"),
        )

    def decode_request(self, data: bytes) -> PasswordRequest:
        self._check_size(data, self.request_size, "request")
        selector, length_text = self._request.unpack(data)
        return PasswordRequest(
            selector=_decode_selector(selector),
            length_text=_decode_text(length_text),
        )

    # =========================================================================
    # RESPONSE
    # =========================================================================

    def encode_response(self, response: PasswordResponse) -> bytes:
        return self._response.pack(
            response.keep_going,
            _encode_text(response.password, self.config.password_size, "password"),
            response.is_error,
            _encode_text(response.error_message, self.config.error_size, "error message"),
        )

    def decode_response(self, data: bytes) -> PasswordResponse:
        self._check_size(data, self.response_size, "response")
        keep_going, password, is_error, error_message = self._response.unpack(data)
        return PasswordResponse(
            keep_going=keep_going,
            password=_decode_text(password),
            is_error=is_error,
            error_message=_decode_text(error_message),
        )
