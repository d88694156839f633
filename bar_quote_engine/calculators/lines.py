from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Dict, Iterable

from ..models import LINE_KINDS, PetrolLine
from ..utils import non_negative, to_decimal


# Imperial gallon in litres
GALLON_TO_LITRE = Decimal("4.54609")


def _unit_price_x_qty(line: Any) -> Decimal:
    return to_decimal(line.unit_price) * to_decimal(line.qty)


def _per_guest(line: Any) -> Decimal:
    return to_decimal(line.price_per_guest) * to_decimal(line.guests)


def _hourly(line: Any) -> Decimal:
    return to_decimal(line.hourly_rate) * to_decimal(line.hours)


def _petrol(line: PetrolLine) -> Decimal:
    """Fuel cost by one of two models; incomplete input prices at 0 until filled in.

    - mpg: litres = miles / mpg × 4.54609, amount = litres × price per litre
    - perMile: amount = miles × cost per mile
    """
    miles = to_decimal(line.miles)
    if line.model == "mpg":
        mpg = to_decimal(line.mpg)
        price = to_decimal(line.price_per_litre)
        if miles > 0 and mpg > 0 and price > 0:
            litres = (miles / mpg) * GALLON_TO_LITRE
            return litres * price
    elif line.model == "perMile":
        per_mile = to_decimal(line.cost_per_mile)
        if miles > 0 and per_mile > 0:
            return miles * per_mile
    return Decimal(0)


PRICERS: Dict[str, Callable[[Any], Decimal]] = {
    "package": _unit_price_x_qty,
    "custom": _unit_price_x_qty,
    "class": _per_guest,
    "boozyBrunch": _per_guest,
    "guestFee": _per_guest,
    "staffWork": _hourly,
    "staffTravel": _hourly,
    "petrol": _petrol,
}


def assert_pricers_cover(kinds: Iterable[str]) -> None:
    missing = sorted(set(kinds) - set(PRICERS))
    if missing:
        raise RuntimeError(f"No pricing rule for line kind(s): {', '.join(missing)}")


assert_pricers_cover(LINE_KINDS)


def line_total(line) -> Decimal:
    """Unrounded, non-negative amount of one quote line."""
    return non_negative(PRICERS[line.kind](line))
