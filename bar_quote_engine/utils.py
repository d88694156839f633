from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


CENT = Decimal("0.01")
TEN_THOUSANDTH = Decimal("0.0001")


def to_decimal(x) -> Decimal:
    """Coerce user/storage input to a finite Decimal; anything unusable becomes 0."""
    if isinstance(x, Decimal):
        return x if x.is_finite() else Decimal(0)
    if x is None or isinstance(x, bool):
        return Decimal(0)
    try:
        val = Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return val if val.is_finite() else Decimal(0)


def optional_decimal(x) -> Decimal | None:
    if x is None or x == "":
        return None
    return to_decimal(x)


def round2(x) -> Decimal:
    return to_decimal(x).quantize(CENT, rounding=ROUND_HALF_UP)


def round4(x) -> Decimal:
    return to_decimal(x).quantize(TEN_THOUSANDTH, rounding=ROUND_HALF_UP)


def non_negative(x) -> Decimal:
    val = to_decimal(x)
    return val if val > 0 else Decimal(0)


def whole(x) -> Decimal:
    """Round to a whole, non-negative count (custom item quantities)."""
    return non_negative(to_decimal(x).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def fmt_number(x) -> str:
    """Plain number for descriptions: 2 -> '2', 2.50 -> '2.5', 1E+2 -> '100'."""
    val = to_decimal(x)
    if val == val.to_integral_value():
        return str(int(val))
    return format(val.normalize(), "f")


def money(amount, symbol: str = "€", places: int = 2) -> str:
    q = Decimal(10) ** -places
    val = to_decimal(amount).quantize(q, rounding=ROUND_HALF_UP)
    parts = f"{val:.{places}f}".split(".")
    whole_part = parts[0]
    frac = parts[1] if len(parts) > 1 else "00"
    sign = ""
    if whole_part.startswith("-"):
        sign = "-"
        whole_part = whole_part[1:]
    whole_with_commas = "{:,}".format(int(whole_part))
    return f"{sign}{symbol}{whole_with_commas}.{frac}"


def generate_id() -> str:
    return str(uuid.uuid4())
