from __future__ import annotations

import json
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from ..calculators.lines import line_total
from ..models import CostingData, DrinkBreakdownItem, Overheads, Quote, Settings
from ..normalize.costing import normalize_costing
from ..utils import round2, round4


# Extras rows regenerated from quote lines on every quote change
QUOTE_SOURCES = frozenset(
    {
        "customLine",
        "quoteDerivedClass",
        "quoteDerivedBrunch",
        "quoteDerivedGuestFee",
    }
)

_OVERHEAD_KINDS = {
    "staff_wages": "staffWork",
    "staff_travel": "staffTravel",
    "petrol": "petrol",
}


def overheads_from_quote(quote: Quote) -> Overheads:
    """Staff wages, staff travel and petrol mirrored from the quote's lines."""
    sums: Dict[str, Decimal] = {}
    for field, kind in _OVERHEAD_KINDS.items():
        total = sum((line_total(line) for line in quote.lines if line.kind == kind), Decimal(0))
        sums[field] = round2(total)
    vat_rate = quote.vat.rate if quote.vat.enabled else Decimal(0)
    return Overheads(vat_rate=vat_rate, **sums)


def _class_costs(settings: Settings, convert: Callable[[Decimal], Decimal]) -> Dict[str, Decimal]:
    cp = settings.class_pricing
    return {
        "Classic": convert(cp.classic_per_head),
        "Luxury": convert(cp.luxury_per_head),
        "Ultimate": convert(cp.ultimate_per_head),
    }


def extras_from_quote(
    quote: Quote,
    settings: Settings,
    convert: Optional[Callable[[Decimal], Decimal]] = None,
) -> List[DrinkBreakdownItem]:
    """Costing rows for quote revenue that is not beverage inventory.

    Custom items carry their owner cost; class rows cost the settings per-head
    price for the tier; brunch and custom-package rows carry no direct cost.
    """
    convert = convert or (lambda v: v)
    class_costs = _class_costs(settings, convert)
    out: List[DrinkBreakdownItem] = []
    for idx, line in enumerate(quote.lines):
        if line.kind == "class":
            out.append(
                DrinkBreakdownItem(
                    id=f"quote-class-{idx}",
                    name=line.tier,
                    qty=line.guests,
                    cost=class_costs.get(line.tier, Decimal(0)),
                    customer_price=line.price_per_guest,
                    source="quoteDerivedClass",
                )
            )
        elif line.kind == "boozyBrunch":
            out.append(
                DrinkBreakdownItem(
                    id=f"quote-brunch-{idx}",
                    name="Boozy Brunch",
                    qty=line.guests,
                    customer_price=line.price_per_guest,
                    source="quoteDerivedBrunch",
                )
            )
        elif line.kind == "guestFee":
            out.append(
                DrinkBreakdownItem(
                    id=f"quote-guestfee-{idx}",
                    name="Custom Package",
                    qty=line.guests,
                    customer_price=line.price_per_guest,
                    source="quoteDerivedGuestFee",
                )
            )
        elif line.kind == "custom":
            out.append(
                DrinkBreakdownItem(
                    id=f"quote-line-{idx}",
                    name=line.description or "Custom item",
                    qty=line.qty,
                    cost=line.owner_cost,
                    customer_price=line.unit_price,
                    source="customLine",
                )
            )
    return out


def _merge_key(item: DrinkBreakdownItem) -> str:
    return "|".join(
        [
            item.source or "none",
            item.name,
            format(round4(item.cost), "f"),
            format(round4(item.customer_price), "f"),
        ]
    )


def merge_extras(items: List[DrinkBreakdownItem]) -> List[DrinkBreakdownItem]:
    """Collapse rows sharing source, name, cost and price; quantities add up."""
    grouped: Dict[str, DrinkBreakdownItem] = {}
    for item in items:
        key = _merge_key(item)
        existing = grouped.get(key)
        if existing is None:
            grouped[key] = item.model_copy()
        else:
            grouped[key] = existing.model_copy(update={"qty": existing.qty + item.qty})
    return list(grouped.values())


def extras_signature(items: List[DrinkBreakdownItem]) -> str:
    """Stable serialization used to detect a change in quote-derived extras."""
    return json.dumps(
        [
            {
                "name": item.name,
                "qty": format(round4(item.qty), "f"),
                "cost": format(round4(item.cost), "f"),
                "customerPrice": format(round4(item.customer_price), "f"),
                "source": item.source,
            }
            for item in items
        ],
        sort_keys=True,
    )


def sync_costing_with_quote(
    costing: CostingData,
    quote: Quote,
    settings: Settings,
    convert: Optional[Callable[[Decimal], Decimal]] = None,
) -> CostingData:
    """Re-mirror overheads and quote-derived extras after a quote change.

    Overheads always follow the quote's staff/travel/petrol lines. Derived
    extras are replaced wholesale when their signature changes; user-added
    extras are kept after them.
    """
    updated = costing.model_copy(update={"overheads": overheads_from_quote(quote)})

    derived = merge_extras(extras_from_quote(quote, settings, convert))
    current = [e for e in costing.extras if e.source in QUOTE_SOURCES]
    if extras_signature(current) != extras_signature(derived):
        user_rows = [e for e in costing.extras if e.source not in QUOTE_SOURCES]
        updated = updated.model_copy(update={"extras": derived + user_rows})

    return normalize_costing(updated)
