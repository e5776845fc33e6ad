"""
=============================================================================
PROTOCOL MESSAGES
=============================================================================

The four message shapes of a session:

    ┌──────────────────┬───────────────┬──────────────────────────────────┐
    │ Message          │ Direction     │ Lifetime                         │
    ├──────────────────┼───────────────┼──────────────────────────────────┤
    │ MenuMessage      │ server→client │ once per connection              │
    │ PasswordRequest  │ client→server │ once per loop iteration          │
    │ ValidatedRequest │ (never sent)  │ inside one server iteration      │
    │ PasswordResponse │ server→client │ once per loop iteration          │
    └──────────────────┴───────────────┴──────────────────────────────────┘

These are plain values. Turning them into bytes is the codec's job
(see codec.py), checking them is the validator's job.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional

from .selectors import PasswordType, Rejection, Selector


MENU_TEMPLATE = (
    "Insert the type of password and its length (between {min_length} and {max_length}):\n"
    "  n: numeric password (only digits)\n"
    "  a: alphabetic password (only lowercase letters)\n"
    "  m: mixed password (lowercase letters and digits)\n"
    "  s: secure password (uppercase letters, lowercase letters, digits, and symbols)\n"
    "  q: to close the connection\n"
    "? "
)


def build_menu_text(min_length: int, max_length: int) -> str:
    """Render the menu for the given accepted length range."""
    return MENU_TEMPLATE.format(min_length=min_length, max_length=max_length)


@dataclass(frozen=True)
class MenuMessage:
    """Menu text sent to a client right after it connects."""

    text: str


@dataclass(frozen=True)
class PasswordRequest:
    """
    A client's request, exactly as it came off the wire.

    Attributes:
        selector: Raw selector character (may be unknown, may be "").
        length_text: Requested length as typed, not yet known to be numeric.
    """

    selector: str
    length_text: str = ""

    @property
    def kind(self) -> Optional[Selector]:
        """The decoded selector, or None when the character is unknown."""
        return Selector.parse(self.selector)

    @property
    def is_terminate(self) -> bool:
        kind = self.kind
        return kind is not None and kind.is_terminate


@dataclass(frozen=True)
class ValidatedRequest:
    """A request that passed validation: known class, length in range."""

    password_type: PasswordType
    length: int


@dataclass(frozen=True)
class PasswordResponse:
    """
    The server's answer to one request.

    Shapes that can occur:

        keep_going  password  is_error  error_message
        ──────────  ────────  ────────  ─────────────
        True        "xY3..."  False     ""              success
        True        ""        True      "The ..."       rejection
        False       ""        False     ""              session closing

    Use the classmethods rather than building these by hand.
    """

    keep_going: bool
    password: str = ""
    is_error: bool = False
    error_message: str = ""

    @classmethod
    def success(cls, password: str) -> "PasswordResponse":
        return cls(keep_going=True, password=password)

    @classmethod
    def rejected(cls, rejection: Rejection) -> "PasswordResponse":
        return cls(keep_going=True, is_error=True, error_message=rejection.message)

    @classmethod
    def closing(cls) -> "PasswordResponse":
        return cls(keep_going=False)
