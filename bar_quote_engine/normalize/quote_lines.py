from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from ..catalog import BRUNCH_PRICE_PER_GUEST, CLASS_PRICES, DEFAULT_PETROL_PRICE_PER_LITRE, PACKAGE_PRICES
from ..models import (
    Amount,
    BoozyBrunchLine,
    ClassLine,
    ClassTier,
    CustomLine,
    GuestFeeLine,
    OptionalAmount,
    PackageLine,
    PetrolLine,
    Record,
    Settings,
    StaffTravelLine,
    StaffWorkLine,
    VatConfig,
)
from ..utils import round2, whole


class CustomItem(Record):
    description: str = ""
    unit_price: Amount = Decimal(0)
    owner_cost: Amount = Decimal(0)
    qty: Amount = Decimal(0)


def combine_custom_items(items: List[CustomItem]) -> List[CustomItem]:
    """Merge entries with the same description, price and owner cost.

    Description matching ignores case and surrounding whitespace; prices compare
    at 2 dp; quantities are whole numbers and add up.
    """
    merged: Dict[str, CustomItem] = {}
    for item in items:
        unit_price = round2(item.unit_price)
        owner_cost = round2(item.owner_cost)
        key = f"{item.description.strip().lower()}|{unit_price}|{owner_cost}"
        existing = merged.get(key)
        if existing is not None:
            merged[key] = existing.model_copy(update={"qty": existing.qty + whole(item.qty)})
        else:
            merged[key] = item.model_copy(
                update={"unit_price": unit_price, "owner_cost": owner_cost, "qty": whole(item.qty)}
            )
    return list(merged.values())


class QuoteForm(Record):
    """Raw quote editor input, before it becomes quote lines."""

    packages: Dict[str, int] = Field(default_factory=dict)  # package name -> qty
    packages_enabled: bool = True
    class_enabled: bool = False
    class_tier: ClassTier = "Classic"
    class_guests: int = 0
    brunch_enabled: bool = False
    brunch_guests: int = 0
    guest_fee_enabled: bool = False
    guest_fee_cocktails: int = 0
    guest_fee_price: OptionalAmount = None  # defaults to the settings cocktail price
    staff_work_hours: Amount = Decimal(0)
    staff_travel_hours: Amount = Decimal(0)
    petrol_miles: Amount = Decimal(0)
    petrol_mpg: OptionalAmount = None  # defaults to the settings mpg
    petrol_price_per_litre: Amount = DEFAULT_PETROL_PRICE_PER_LITRE
    custom_items: List[CustomItem] = Field(default_factory=list)
    vat: Optional[VatConfig] = None  # defaults from settings


def default_vat(settings: Settings) -> VatConfig:
    return VatConfig(enabled=settings.vat.default_enabled, rate=settings.vat.default_rate)


def build_quote_lines(form: QuoteForm, settings: Settings) -> list:
    """Quote lines in editor order; empty sections produce no line."""
    lines: list = []

    if form.packages_enabled:
        for name, price in PACKAGE_PRICES.items():
            qty = form.packages.get(name, 0)
            if qty > 0:
                lines.append(PackageLine(name=name, unit_price=price, qty=qty))

    if form.class_enabled and form.class_guests > 0:
        lines.append(
            ClassLine(
                tier=form.class_tier,
                price_per_guest=CLASS_PRICES[form.class_tier],
                guests=form.class_guests,
            )
        )

    if form.brunch_enabled and form.brunch_guests > 0:
        lines.append(BoozyBrunchLine(price_per_guest=BRUNCH_PRICE_PER_GUEST, guests=form.brunch_guests))

    if form.guest_fee_enabled and form.guest_fee_cocktails > 0:
        price = form.guest_fee_price
        if price is None:
            price = settings.cost_tables.cocktail.customer_price
        lines.append(GuestFeeLine(price_per_guest=price, guests=form.guest_fee_cocktails))

    if form.staff_work_hours > 0:
        lines.append(StaffWorkLine(hourly_rate=settings.hourly_rates.staff_work, hours=form.staff_work_hours))

    if form.staff_travel_hours > 0:
        lines.append(
            StaffTravelLine(hourly_rate=settings.hourly_rates.staff_travel, hours=form.staff_travel_hours)
        )

    mpg = form.petrol_mpg if form.petrol_mpg is not None else settings.travel.default_mpg
    if form.petrol_miles > 0 and form.petrol_price_per_litre > 0 and mpg > 0:
        lines.append(
            PetrolLine(
                model="mpg",
                miles=form.petrol_miles,
                mpg=mpg,
                price_per_litre=form.petrol_price_per_litre,
            )
        )

    for item in combine_custom_items(form.custom_items):
        if item.description and item.qty > 0:
            lines.append(
                CustomLine(
                    description=item.description,
                    unit_price=item.unit_price,
                    owner_cost=item.owner_cost,
                    qty=item.qty,
                )
            )
    return lines
