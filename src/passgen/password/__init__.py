"""
Password engine and request validator. Pure logic, no I/O.
"""

from .generator import (
    generate_password,
    generate_numeric,
    generate_alpha,
    generate_mixed,
    generate_secure,
    alphabet_for,
    SECURE_ALPHABET,
)
from .validator import validate, validate_type, validate_length

__all__ = [
    "generate_password",
    "generate_numeric",
    "generate_alpha",
    "generate_mixed",
    "generate_secure",
    "alphabet_for",
    "SECURE_ALPHABET",
    "validate",
    "validate_type",
    "validate_length",
]
