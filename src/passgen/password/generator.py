"""
=============================================================================
PASSWORD ENGINE
=============================================================================

Pure functions from (PasswordType, length) to a password string. No I/O,
no shared mutable state.

    ┌──────────┬──────────────────────────────────────────┬──────────────┐
    │ Type     │ Each position is drawn from              │ Alphabet size│
    ├──────────┼──────────────────────────────────────────┼──────────────┤
    │ NUMERIC  │ 0-9                                      │ 10           │
    │ ALPHA    │ a-z                                      │ 26           │
    │ MIXED    │ 50/50: a letter a-z OR a digit 0-9       │ 36           │
    │ SECURE   │ a-z A-Z 0-9 ! @ # $ % ^ & * ( )          │ 72           │
    └──────────┴──────────────────────────────────────────┴──────────────┘

Every position is an independent draw. There is no "at least one digit"
rule and no shuffling step. Note that MIXED is NOT uniform over its 36
characters: a digit comes up half of the time.

=============================================================================
RANDOMNESS
=============================================================================

The default source is secrets.SystemRandom (the OS CSPRNG), so no seeding
is involved. Any random.Random instance can be passed as `rng`, which is
how tests get reproducible output.

=============================================================================
"""

import random
import secrets
import string
from typing import Callable, Dict, Optional

from ..protocol.selectors import PasswordType


DIGITS = string.digits
LOWERCASE = string.ascii_lowercase
UPPERCASE = string.ascii_uppercase
SYMBOLS = "!@#$%^&*()"
SECURE_ALPHABET = LOWERCASE + UPPERCASE + DIGITS + SYMBOLS

_system_random = secrets.SystemRandom()


def _draw(alphabet: str, length: int, rng: random.Random) -> str:
    return "".join(rng.choice(alphabet) for _ in range(length))


def generate_numeric(length: int, rng: Optional[random.Random] = None) -> str:
    """Digits only."""
    return _draw(DIGITS, length, rng or _system_random)


def generate_alpha(length: int, rng: Optional[random.Random] = None) -> str:
    """Lowercase letters only."""
    return _draw(LOWERCASE, length, rng or _system_random)


def generate_mixed(length: int, rng: Optional[random.Random] = None) -> str:
    """Each position: coin flip, then a uniform letter or a uniform digit."""
    rng = rng or _system_random
    return "".join(
        rng.choice(LOWERCASE) if rng.random() < 0.5 else rng.choice(DIGITS)
        for _ in range(length)
    )


def generate_secure(length: int, rng: Optional[random.Random] = None) -> str:
    """Both letter cases, digits and the ten symbols of SYMBOLS."""
    return _draw(SECURE_ALPHABET, length, rng or _system_random)


# One entry per PasswordType. test_generator checks this stays exhaustive,
# so adding a type without a generator fails loudly instead of producing
# nothing.
GENERATORS: Dict[PasswordType, Callable[[int, Optional[random.Random]], str]] = {
    PasswordType.NUMERIC: generate_numeric,
    PasswordType.ALPHA: generate_alpha,
    PasswordType.MIXED: generate_mixed,
    PasswordType.SECURE: generate_secure,
}


def alphabet_for(password_type: PasswordType) -> str:
    """Every character a password of this type may contain."""
    return {
        PasswordType.NUMERIC: DIGITS,
        PasswordType.ALPHA: LOWERCASE,
        PasswordType.MIXED: LOWERCASE + DIGITS,
        PasswordType.SECURE: SECURE_ALPHABET,
    }[password_type]


def generate_password(
    password_type: PasswordType,
    length: int,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Generate a password of exactly `length` characters.

    Args:
        password_type: Character class to draw from.
        length: Positive length, already validated by the caller.
        rng: Optional random source (defaults to the system CSPRNG).

    Returns:
        The generated password.
    """
    return GENERATORS[password_type](length, rng)
