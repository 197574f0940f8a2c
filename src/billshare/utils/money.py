from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Mapping

CENT = Decimal("0.01")

# Smallest transfer worth making: one cent.
MATERIALITY_CENTS = 1


def to_cents(value: Decimal | float | int | str) -> int:
    """Convert a currency amount in major units to integer cents.

    Floats go through ``str`` first so ``0.1`` becomes exactly ten cents.
    Half cents round to even, so ``0.005`` becomes zero.
    """
    if isinstance(value, bool):
        raise ValueError("amount must be a number")
    if isinstance(value, float):
        value = str(value)
    try:
        decimal_value = Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc
    if not decimal_value.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return int((decimal_value / CENT).quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def from_cents(amount_cents: int) -> Decimal:
    return (Decimal(amount_cents) * CENT).quantize(CENT)


def format_amount(amount_cents: int, currency: str = "") -> str:
    sign = "-" if amount_cents < 0 else ""
    return f"{sign}{currency}{from_cents(abs(amount_cents))}"


def cents_map(values: Mapping[str, Decimal | float | int | str]) -> dict[str, int]:
    return {code: to_cents(value) for code, value in values.items()}
