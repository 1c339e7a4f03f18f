"""Fixed-point decimal helpers — exact arithmetic for protocol quantities.

All ledger math goes through ``LEDGER_CONTEXT`` so results do not depend on the
caller's thread-local decimal context. Binary floats are rejected outright.
"""
from __future__ import annotations

from decimal import (
    ROUND_DOWN,
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
)

# 34 significant digits, the precision of IEEE 754 decimal128.
LEDGER_CONTEXT = Context(
    prec=34,
    rounding=ROUND_HALF_EVEN,
    traps=[DivisionByZero, InvalidOperation, Overflow],
)

ZERO = Decimal("0")
ONE = Decimal("1")
TEN = Decimal("10")

MANTISSA_FACTOR = 18
CTOKEN_DECIMALS = 8


def exponent_to_decimal(decimals: int) -> Decimal:
    """Return ``10**decimals`` built by repeated multiplication."""
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    result = ONE
    for _ in range(decimals):
        result = LEDGER_CONTEXT.multiply(result, TEN)
    return result


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Convert an int, numeric string or Decimal into a ledger Decimal.

    Floats raise ``TypeError``: a binary float has already lost the exact
    value, so it must be passed as a string instead.
    """
    if isinstance(value, float):
        raise TypeError(f"Refusing inexact float value {value!r}; pass it as a string")
    if isinstance(value, bool):
        raise TypeError("Booleans are not decimal quantities")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal number: {value!r}") from exc
        if not result.is_finite():
            raise ValueError(f"Not a finite decimal number: {value!r}")
        return result
    raise TypeError(f"Cannot convert {type(value).__name__} to Decimal")


def add(a: Decimal, b: Decimal) -> Decimal:
    return LEDGER_CONTEXT.add(a, b)


def sub(a: Decimal, b: Decimal) -> Decimal:
    return LEDGER_CONTEXT.subtract(a, b)


def mul(a: Decimal, b: Decimal) -> Decimal:
    return LEDGER_CONTEXT.multiply(a, b)


def div(a: Decimal, b: Decimal) -> Decimal:
    """Divide ``a`` by ``b``. Raises ``decimal.DivisionByZero`` when ``b`` is zero."""
    return LEDGER_CONTEXT.divide(a, b)


def is_zero(value: Decimal) -> bool:
    return value == ZERO


def truncate(value: Decimal, places: int) -> Decimal:
    """Drop digits beyond ``places`` fractional digits (rounds toward zero)."""
    exponent = ONE.scaleb(-places)
    return value.quantize(exponent, rounding=ROUND_DOWN, context=LEDGER_CONTEXT)


def from_mantissa(raw: int | str, decimals: int, places: int | None = None) -> Decimal:
    """Scale an on-chain integer down by ``10**decimals``.

    The result keeps ``places`` fractional digits (``decimals`` by default),
    truncated toward zero.

    Examples:
        from_mantissa(250000000, 8) -> Decimal("2.50000000")
        from_mantissa("1000000000000000000", 18) -> Decimal("1.000000000000000000")
        from_mantissa("204000000000000", 16, 18) -> Decimal("0.020400000000000000")
    """
    scaled = div(to_decimal(raw), exponent_to_decimal(decimals))
    return truncate(scaled, decimals if places is None else places)
