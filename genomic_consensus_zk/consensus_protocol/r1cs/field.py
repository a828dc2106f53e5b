"""Prime field helpers for signal values."""

from __future__ import annotations

from ..config import FIELD_MODULUS


def to_field(value: int) -> int:
    """Embed a (possibly negative) integer into F."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"field values must be int, got {type(value).__name__}")
    return value % FIELD_MODULUS


def to_signed(value: int) -> int:
    """
    Interpret a field element as a signed integer.

    Elements above (p - 1) / 2 are read as negative, which matches the
    encoding of `to_field` for any |x| < p / 2.
    """
    value %= FIELD_MODULUS
    if value > FIELD_MODULUS // 2:
        return value - FIELD_MODULUS
    return value


def inverse(value: int) -> int:
    """Multiplicative inverse; 0 maps to 0 (IsZero hint convention)."""
    value %= FIELD_MODULUS
    if value == 0:
        return 0
    return pow(value, -1, FIELD_MODULUS)
