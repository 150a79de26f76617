"""
Money Normalizer

All currency values are ``Decimal`` quantized to cents.

Rounding is ROUND_HALF_UP, which for ``Decimal`` means half away from
zero at the cent boundary. Negative values pass through unchanged in
sign: this layer does not clamp to zero (forms reject non-positive
receipt amounts before they get here).
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """
    Coerce arbitrary input to a 2-decimal money value.

    ``None``, empty strings, booleans, non-numeric strings (including
    underscore-grouped digits), NaN and infinities all become
    ``Decimal("0.00")``.
    """
    if value is None or isinstance(value, bool):
        return ZERO

    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        # str() keeps the shortest repr, so 19.999 rounds as written
        number = _parse(str(value))
    elif isinstance(value, str):
        text = value.strip()
        # Decimal() would read "1_000" as 1000
        if not text or "_" in text:
            return ZERO
        number = _parse(text)
    else:
        return ZERO

    if number is None or not number.is_finite():
        return ZERO

    try:
        rounded = number.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context can hold
        return ZERO
    # Avoid rendering "-0.00"
    return rounded if rounded else ZERO


def _parse(text: str) -> Optional[Decimal]:
    try:
        return Decimal(text)
    except InvalidOperation:
        return None


def format_money(value: Any) -> str:
    """Render as ``$`` + two decimals. No separators, no locale."""
    return f"${to_money(value):.2f}"
