"""
=============================================================================
SELECTORS, PASSWORD TYPES AND REJECTIONS
=============================================================================

On the wire a request names what it wants with ONE character:

    n / N   numeric         (digits only)
    a / A   alphabetic      (lowercase letters only)
    m / M   mixed           (lowercase letters and digits)
    s / S   secure          (both cases, digits, symbols)
    q / Q   quit            (the termination sentinel)

That character is decoded exactly once, into a closed enum, and nothing
downstream looks at the raw character again:

    raw byte ──► Selector.parse() ──► Selector.NUMERIC ──► PasswordType.NUMERIC
                                 └──► Selector.TERMINATE (no PasswordType)
                                 └──► None (unknown selector)

=============================================================================
"""

from enum import Enum
from typing import Optional


class PasswordType(Enum):
    """Character classes the password engine can generate."""

    NUMERIC = "n"
    ALPHA = "a"
    MIXED = "m"
    SECURE = "s"


class Selector(Enum):
    """
    Closed set of request selectors: one per PasswordType plus TERMINATE.

    Values are the canonical (lowercase) wire characters.
    """

    NUMERIC = "n"
    ALPHA = "a"
    MIXED = "m"
    SECURE = "s"
    TERMINATE = "q"

    @classmethod
    def parse(cls, char: str) -> Optional["Selector"]:
        """
        Decode a raw selector character, case-insensitively.

        Returns:
            The matching Selector, or None for anything else (including an
            empty string or more than one character).
        """
        if len(char) != 1:
            return None
        try:
            return cls(char.lower())
        except ValueError:
            return None

    @property
    def is_terminate(self) -> bool:
        return self is Selector.TERMINATE

    @property
    def password_type(self) -> Optional[PasswordType]:
        """The generation class this selector asks for, None for TERMINATE."""
        if self is Selector.TERMINATE:
            return None
        return PasswordType(self.value)


class Rejection(Enum):
    """
    Why the validator refused a request.

    Each reason maps to a fixed, human-readable message that is sent back
    in-band (these exact strings are part of the protocol).
    """

    INVALID_TYPE = "invalid_type"
    INVALID_LENGTH = "invalid_length"

    @property
    def message(self) -> str:
        return _REJECTION_MESSAGES[self]


_REJECTION_MESSAGES = {
    Rejection.INVALID_TYPE: "The type inserted is not valid.\n",
    Rejection.INVALID_LENGTH: "The length for the password is not valid.\n",
}
