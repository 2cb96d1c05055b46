"""GTIN format rules.

A GTIN is accepted when it is made of ASCII digits only and is 8, 12, 13 or 14
characters long (GTIN-8, GTIN-12/UPC-A, GTIN-13/EAN-13, GTIN-14). The GS1
check digit is computed here for diagnostics and for barcode rendering, but
format validation does not depend on it unless explicitly asked to.
"""

from __future__ import annotations

from src.gs1link.core.errors import ValidationError

GTIN_LENGTHS: frozenset[int] = frozenset({8, 12, 13, 14})

GTIN_FORMAT_MESSAGE = "GTIN must be 8, 12, 13, or 14 digits"
GTIN_REQUIRED_MESSAGE = "GTIN is required"
GTIN_CHECK_DIGIT_MESSAGE = "GTIN check digit is invalid"

_DIGITS = frozenset("0123456789")


def is_valid_gtin(value: str | None) -> bool:
    """Return True when ``value`` is an accepted GTIN string."""
    if not isinstance(value, str) or len(value) not in GTIN_LENGTHS:
        return False
    # str.isdigit() also accepts superscripts and other Unicode digits
    return all(ch in _DIGITS for ch in value)


def validate_gtin(
    value: str | None, *, field: str = "gtin", enforce_check_digit: bool = False
) -> str:
    """Return ``value`` unchanged or raise a single-field ValidationError."""
    if not is_valid_gtin(value):
        raise ValidationError.single(field, GTIN_FORMAT_MESSAGE)
    if enforce_check_digit and not has_valid_check_digit(value):
        raise ValidationError.single(field, GTIN_CHECK_DIGIT_MESSAGE)
    return value


def compute_check_digit(body: str) -> int:
    """GS1 modulo-10 check digit of ``body`` (the GTIN without its last digit).

    Weights alternate 3, 1, 3, ... starting from the rightmost digit.
    """
    if not body or any(ch not in _DIGITS for ch in body):
        raise ValueError(f"check digit body must be digits, got {body!r}")
    total = sum(
        int(digit) * (3 if index % 2 == 0 else 1)
        for index, digit in enumerate(reversed(body))
    )
    return (10 - total % 10) % 10


def has_valid_check_digit(gtin: str) -> bool:
    """True when the last digit of ``gtin`` matches its GS1 check digit."""
    if not is_valid_gtin(gtin):
        return False
    return compute_check_digit(gtin[:-1]) == int(gtin[-1])
