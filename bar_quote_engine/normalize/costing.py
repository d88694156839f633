from __future__ import annotations

from decimal import Decimal
from typing import List, Literal, Optional

from ..calculators.costing import calculate_costing
from ..catalog import DrinkPreset
from ..models import BottleCounts, CostingData, DrinkBreakdownItem, Overheads, WineSection
from ..utils import generate_id, non_negative, round2, round4, to_decimal


Section = Literal["beers", "cocktails", "extras", "wineRed", "wineWhite"]
WineColour = Literal["red", "white"]


def clamp_qty(value) -> Decimal:
    return non_negative(round4(value))


def normalize_drink(item: DrinkBreakdownItem, keep_exact_qty: bool = False) -> DrinkBreakdownItem:
    qty = non_negative(item.qty) if keep_exact_qty else clamp_qty(item.qty)
    return item.model_copy(
        update={
            "qty": qty,
            "cost": round4(item.cost),
            "customer_price": round4(item.customer_price),
        }
    )


def derive_bottle_count(items: List[DrinkBreakdownItem], glasses_per_bottle: Decimal) -> Decimal:
    """Bottles implied by the first row's glass count (legacy records without counts)."""
    if not items or glasses_per_bottle <= 0:
        return Decimal(0)
    return round2(non_negative(items[0].qty) / glasses_per_bottle)


def _clean_bottles(value) -> Decimal:
    return non_negative(round2(value))


def _glasses(bottles: Decimal, glasses_per_bottle: Decimal) -> Decimal:
    return round4(bottles * glasses_per_bottle)


def _wine_rows(items: List[DrinkBreakdownItem], glasses: Decimal) -> List[DrinkBreakdownItem]:
    return [normalize_drink(item).model_copy(update={"qty": glasses}) for item in items]


def _normalize_overheads(oh: Overheads) -> Overheads:
    return Overheads(
        staff_wages=non_negative(round2(oh.staff_wages)),
        staff_travel=non_negative(round2(oh.staff_travel)),
        petrol=non_negative(round2(oh.petrol)),
        vat_rate=non_negative(oh.vat_rate),
    )


def normalize_costing(costing: CostingData) -> CostingData:
    """Make a costing record internally consistent and refresh its totals.

    Runs after every edit, in a fixed order:
    1. wine glass quantities = bottle count × glasses per bottle (bottle counts
       are derived once from the glass quantity when a record has none),
    2. quantities clamped to >= 0, costs and prices rounded to 4 dp,
    3. totals recomputed by the costing calculator.

    Idempotent: normalize_costing(normalize_costing(x)) == normalize_costing(x).
    """
    wines = costing.wines
    per_bottle = non_negative(round4(wines.glasses_per_bottle))
    counts = wines.bottle_counts
    if counts is None:
        counts = BottleCounts(
            red=derive_bottle_count(wines.red, per_bottle),
            white=derive_bottle_count(wines.white, per_bottle),
        )
    counts = BottleCounts(red=_clean_bottles(counts.red), white=_clean_bottles(counts.white))

    normalized = costing.model_copy(
        update={
            "wines": WineSection(
                bottle_counts=counts,
                glasses_per_bottle=per_bottle,
                bottle_cost=non_negative(round4(wines.bottle_cost)),
                red=_wine_rows(wines.red, _glasses(counts.red, per_bottle)),
                white=_wine_rows(wines.white, _glasses(counts.white, per_bottle)),
            ),
            # Beer counts are whole bottles as typed; keep them exact
            "beers": [normalize_drink(b, keep_exact_qty=True) for b in costing.beers],
            "cocktails": [normalize_drink(c) for c in costing.cocktails],
            "extras": [normalize_drink(e) for e in costing.extras],
            "overheads": _normalize_overheads(costing.overheads),
        }
    )
    return normalized.model_copy(update={"totals": calculate_costing(normalized)})


# ---------------------------------------------------------------------------
# Edit operations; each returns a freshly normalized record
# ---------------------------------------------------------------------------


def section_items(costing: CostingData, section: Section) -> List[DrinkBreakdownItem]:
    if section == "wineRed":
        return list(costing.wines.red)
    if section == "wineWhite":
        return list(costing.wines.white)
    return list(getattr(costing, section))


def _replace_section(costing: CostingData, section: Section, items: List[DrinkBreakdownItem]) -> CostingData:
    if section == "wineRed":
        return costing.model_copy(update={"wines": costing.wines.model_copy(update={"red": items})})
    if section == "wineWhite":
        return costing.model_copy(update={"wines": costing.wines.model_copy(update={"white": items})})
    return costing.model_copy(update={section: items})


def _edit_item(costing: CostingData, section: Section, item_id: str, field: str, value) -> CostingData:
    items = [
        item.model_copy(update={field: value}) if item.id == item_id else item
        for item in section_items(costing, section)
    ]
    return normalize_costing(_replace_section(costing, section, items))


def update_drink(
    costing: CostingData,
    section: Section,
    item_id: str,
    field: Literal["qty", "customer_price"],
    value,
) -> CostingData:
    """Set quantity or customer price on one row.

    Wine glass quantities are derived from bottle counts, so a qty edit on a
    wine row is overwritten by the next pass; use set_wine_bottles instead.
    """
    return _edit_item(costing, section, item_id, field, to_decimal(value))


def update_drink_meta(
    costing: CostingData,
    section: Literal["beers", "cocktails", "extras"],
    item_id: str,
    field: Literal["name", "cost"],
    value,
) -> CostingData:
    if field == "cost":
        value = to_decimal(value)
    else:
        value = str(value)
    return _edit_item(costing, section, item_id, field, value)


def set_wine_bottles(costing: CostingData, colour: WineColour, bottles) -> CostingData:
    current = normalize_costing(costing)
    counts = current.wines.bottle_counts or BottleCounts()
    counts = counts.model_copy(update={colour: _clean_bottles(bottles)})
    wines = current.wines.model_copy(update={"bottle_counts": counts})
    return normalize_costing(current.model_copy(update={"wines": wines}))


def _append(costing: CostingData, section: Section, item: DrinkBreakdownItem) -> CostingData:
    return normalize_costing(_replace_section(costing, section, section_items(costing, section) + [item]))


def add_extra_line(costing: CostingData) -> CostingData:
    item = DrinkBreakdownItem(id=generate_id(), name="Custom item")
    return _append(costing, "extras", item)


def add_beer_line(costing: CostingData, customer_price) -> CostingData:
    item = DrinkBreakdownItem(id=generate_id(), name="Custom beer", customer_price=to_decimal(customer_price))
    return _append(costing, "beers", item)


def add_cocktail_line(costing: CostingData, customer_price) -> CostingData:
    item = DrinkBreakdownItem(
        id=generate_id(), name="Custom cocktail", customer_price=to_decimal(customer_price)
    )
    return _append(costing, "cocktails", item)


def add_cocktail_from_preset(
    costing: CostingData,
    preset: DrinkPreset,
    qty,
    customer_price,
    cost: Optional[Decimal] = None,
) -> CostingData:
    """Add a preset cocktail, or reset the existing row for it.

    A quantity of 0 or less adds one. ``cost`` is the preset cost already
    converted into the quote's currency; defaults to the EUR preset cost.
    """
    qty = to_decimal(qty)
    qty_to_use = qty if qty > 0 else Decimal(1)
    unit_cost = preset.cost if cost is None else to_decimal(cost)
    fields = {"qty": qty_to_use, "cost": unit_cost, "customer_price": to_decimal(customer_price)}

    if any(c.id == preset.id for c in costing.cocktails):
        cocktails = [c.model_copy(update=fields) if c.id == preset.id else c for c in costing.cocktails]
        return normalize_costing(costing.model_copy(update={"cocktails": cocktails}))
    item = DrinkBreakdownItem(id=preset.id, name=preset.name, **fields)
    return _append(costing, "cocktails", item)


def remove_cocktail(costing: CostingData, item_id: str) -> CostingData:
    cocktails = [c for c in costing.cocktails if c.id != item_id]
    return normalize_costing(costing.model_copy(update={"cocktails": cocktails}))
