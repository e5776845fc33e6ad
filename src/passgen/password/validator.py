"""
=============================================================================
REQUEST VALIDATOR
=============================================================================

Turns a raw PasswordRequest into either a ValidatedRequest or a Rejection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        validate() Flow                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   request ──► STEP 1: type check                                    │
    │                 selector decodes to an allowed PasswordType?        │
    │                 no  ──► Rejection.INVALID_TYPE   (stop here)        │
    │                 yes                                                  │
    │                  │                                                   │
    │                  ▼                                                   │
    │               STEP 2: length check                                  │
    │                 only ASCII digits, non-empty, min <= n <= max?      │
    │                 no  ──► Rejection.INVALID_LENGTH                    │
    │                 yes ──► ValidatedRequest(type, n)                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The order is part of the contract: a request with a bad type AND a bad
length always reports the type.

The termination sentinel is handled by the session before validation. If
it does reach the validator it is not an allowed type and is rejected.

=============================================================================
"""

from typing import Iterable, Optional, Union

from ..protocol.messages import PasswordRequest, ValidatedRequest
from ..protocol.selectors import PasswordType, Rejection


ASCII_DIGITS = frozenset("0123456789")


def validate_type(
    request: PasswordRequest,
    allowed_types: Iterable[PasswordType],
) -> Optional[PasswordType]:
    """Return the requested PasswordType if it is allowed, else None."""
    kind = request.kind
    if kind is None:
        return None
    password_type = kind.password_type
    if password_type is None or password_type not in set(allowed_types):
        return None
    return password_type


def validate_length(length_text: str, min_length: int, max_length: int) -> Optional[int]:
    """
    Return the length as an int if it is well-formed and in range, else None.

    str.isdigit() is not used on purpose: it accepts characters such as
    superscript digits that int() then refuses.

    Leading zeros are allowed ("0008" is 8). More significant digits than
    max_length has is out of range without ever calling int().
    """
    if not length_text or not set(length_text) <= ASCII_DIGITS:
        return None
    significant = length_text.lstrip("0") or "0"
    if len(significant) > len(str(max_length)):
        return None
    length = int(significant)
    if min_length <= length <= max_length:
        return length
    return None


def validate(
    request: PasswordRequest,
    allowed_types: Iterable[PasswordType],
    min_length: int,
    max_length: int,
) -> Union[ValidatedRequest, Rejection]:
    """
    Validate a request against the allowed classes and length range.

    Returns:
        ValidatedRequest on success, otherwise the Rejection reason.
    """
    password_type = validate_type(request, allowed_types)
    if password_type is None:
        return Rejection.INVALID_TYPE

    length = validate_length(request.length_text, min_length, max_length)
    if length is None:
        return Rejection.INVALID_LENGTH

    return ValidatedRequest(password_type=password_type, length=length)
