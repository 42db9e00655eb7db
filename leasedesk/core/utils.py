"""Shared utilities used across the app."""
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(amount) -> Decimal:
    """Quantize any numeric input to cents. Strings go through Decimal, never float."""
    if isinstance(amount, Decimal):
        value = amount
    elif isinstance(amount, float):
        value = Decimal(repr(amount))
    else:
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            raise ValueError(f"Malformed amount: {amount!r}")
    if not value.is_finite():
        raise ValueError(f"Malformed amount: {amount!r}")
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {amount!r}")


def to_stored_money(amount) -> Decimal:
    """to_money for values written to a money column; rejects what the column cannot hold."""
    value = to_money(amount)
    if abs(value) > MAX_AMOUNT:
        raise ValueError(f"Amount out of range: {value} exceeds {MAX_AMOUNT}")
    return value


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
