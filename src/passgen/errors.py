"""
=============================================================================
PASSGEN EXCEPTIONS
=============================================================================

Two tiers of failure exist in the protocol, and only one of them is an
exception:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  PROTOCOL REJECTIONS (not exceptions)                                │
    │     Bad selector, bad length. Sent back in-band as a normal         │
    │     PasswordResponse with is_error=True. The session keeps going.   │
    ├─────────────────────────────────────────────────────────────────────┤
    │  TRANSPORT FAULTS (SessionFault)                                     │
    │     Peer closed, short read, failed send, timeout. The session is   │
    │     abandoned immediately, no retry.                                 │
    │     Client: fatal to the process.                                    │
    │     Server: fatal to that connection only.                           │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from typing import Optional


class PassgenError(Exception):
    """Base class for every error raised by the passgen package."""


class ConfigError(PassgenError, ValueError):
    """Raised by ProtocolConfig.validate() when settings are inconsistent."""


class CodecError(PassgenError):
    """
    Raised when bytes cannot be mapped to or from a fixed-size record.

    This covers a buffer whose length differs from the record size and a
    text field too long for its slot. The codec never judges field contents.
    """


class SessionFault(PassgenError):
    """
    Raised when the transport fails in the middle of a session.

    Carries the protocol stage that was in flight ("menu", "request",
    "response") so logs say which record was lost.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage  # Record being transferred when the fault hit

    def __str__(self) -> str:
        message = super().__str__()
        if self.stage:
            return f"{message} ({self.stage})"
        return message
