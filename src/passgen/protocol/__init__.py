"""
Wire-level pieces of the password protocol: selectors, messages and the
fixed-size record codec.
"""

from .selectors import PasswordType, Selector, Rejection
from .messages import (
    MenuMessage,
    PasswordRequest,
    ValidatedRequest,
    PasswordResponse,
    build_menu_text,
)
from .codec import RecordCodec

__all__ = [
    "PasswordType",
    "Selector",
    "Rejection",
    "MenuMessage",
    "PasswordRequest",
    "ValidatedRequest",
    "PasswordResponse",
    "build_menu_text",
    "RecordCodec",
]
