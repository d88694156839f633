from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .utils import optional_decimal, to_decimal


# Non-finite and unparsable numbers coerce to 0 at the model boundary
Amount = Annotated[Decimal, BeforeValidator(to_decimal)]
OptionalAmount = Annotated[Optional[Decimal], BeforeValidator(optional_decimal)]

Currency = Literal["EUR", "GBP"]
QuoteStatus = Literal["Draft", "Sent", "Accepted", "Declined", "Expired"]
PaymentStatus = Literal["Pending", "DepositPaid", "PaidInFull"]
BookingStatus = Literal["Confirmed", "Completed", "Cancelled"]
PackageName = Literal["Lily", "Orchid", "Rose"]
ClassTier = Literal["Classic", "Luxury", "Ultimate"]
PetrolModel = Literal["mpg", "perMile"]
DrinkSource = Literal[
    "customLine",
    "quoteDerivedClass",
    "quoteDerivedBrunch",
    "quoteDerivedGuestFee",
]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Record(BaseModel):
    """Base for stored records: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Quote lines
# ---------------------------------------------------------------------------


class PackageLine(Record):
    kind: Literal["package"] = "package"
    name: PackageName = "Lily"
    unit_price: Amount = Decimal(0)
    qty: Amount = Decimal(0)


class ClassLine(Record):
    kind: Literal["class"] = "class"
    tier: ClassTier = "Classic"
    price_per_guest: Amount = Decimal(0)
    guests: Amount = Decimal(0)


class BoozyBrunchLine(Record):
    kind: Literal["boozyBrunch"] = "boozyBrunch"
    price_per_guest: Amount = Decimal(0)
    guests: Amount = Decimal(0)


class GuestFeeLine(Record):
    """Custom package billed per cocktail; ``guests`` holds the cocktail count."""

    kind: Literal["guestFee"] = "guestFee"
    price_per_guest: Amount = Decimal(0)
    guests: Amount = Decimal(0)


class CustomLine(Record):
    kind: Literal["custom"] = "custom"
    description: str = ""
    unit_price: Amount = Decimal(0)
    owner_cost: Amount = Decimal(0)
    qty: Amount = Decimal(0)


class StaffWorkLine(Record):
    kind: Literal["staffWork"] = "staffWork"
    hourly_rate: Amount = Decimal(0)
    hours: Amount = Decimal(0)


class StaffTravelLine(Record):
    kind: Literal["staffTravel"] = "staffTravel"
    hourly_rate: Amount = Decimal(0)
    hours: Amount = Decimal(0)


class PetrolLine(Record):
    kind: Literal["petrol"] = "petrol"
    model: PetrolModel = "mpg"
    price_per_litre: OptionalAmount = None
    miles: OptionalAmount = None
    mpg: OptionalAmount = None
    cost_per_mile: OptionalAmount = None


LINE_TYPES = (
    PackageLine,
    ClassLine,
    BoozyBrunchLine,
    GuestFeeLine,
    CustomLine,
    StaffWorkLine,
    StaffTravelLine,
    PetrolLine,
)

QuoteLine = Annotated[
    Union[
        PackageLine,
        ClassLine,
        BoozyBrunchLine,
        GuestFeeLine,
        CustomLine,
        StaffWorkLine,
        StaffTravelLine,
        PetrolLine,
    ],
    Field(discriminator="kind"),
]

LINE_KINDS: tuple[str, ...] = tuple(t.model_fields["kind"].default for t in LINE_TYPES)
# Flat-price lines that already include cocktails
BUNDLE_KINDS = frozenset({"package", "guestFee", "class", "boozyBrunch"})
# Owner-only cost lines, never shown to the customer
INTERNAL_KINDS = frozenset({"staffWork", "staffTravel", "petrol"})


# ---------------------------------------------------------------------------
# Quote
# ---------------------------------------------------------------------------


class Customer(Record):
    name: str = ""
    email: str = ""


class EventInfo(Record):
    type: str = ""
    location: str = ""
    date: str = ""  # ISO date string as entered
    time: str = ""
    guests: int = 0


class VatConfig(Record):
    enabled: bool = False
    rate: Amount = Decimal(0)


class Totals(Record):
    net: Amount = Decimal(0)
    vat: Amount = Decimal(0)
    gross: Amount = Decimal(0)


class Quote(Record):
    id: str
    enquiry_id: Optional[str] = None
    customer: Customer = Field(default_factory=Customer)
    event: EventInfo = Field(default_factory=EventInfo)
    lines: List[QuoteLine] = Field(default_factory=list)
    vat: VatConfig = Field(default_factory=VatConfig)
    # Derived; recomputed from lines before every write
    totals: Totals = Field(default_factory=Totals)
    status: QuoteStatus = "Draft"
    currency: Currency = "EUR"
    fx_rate: OptionalAmount = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Costing
# ---------------------------------------------------------------------------


class DrinkBreakdownItem(Record):
    id: str
    name: str = ""
    qty: Amount = Decimal(0)
    cost: Amount = Decimal(0)  # internal cost per unit
    customer_price: Amount = Decimal(0)  # sell price per unit, ex VAT
    source: Optional[DrinkSource] = None


class BottleCounts(Record):
    red: Amount = Decimal(0)
    white: Amount = Decimal(0)


class WineSection(Record):
    # Source of truth for glass quantities once present
    bottle_counts: Optional[BottleCounts] = None
    glasses_per_bottle: Amount = Decimal(4)
    bottle_cost: Amount = Decimal(0)
    red: List[DrinkBreakdownItem] = Field(default_factory=list)
    white: List[DrinkBreakdownItem] = Field(default_factory=list)


class Overheads(Record):
    staff_wages: Amount = Decimal(0)
    staff_travel: Amount = Decimal(0)
    petrol: Amount = Decimal(0)
    vat_rate: Amount = Decimal(0)


class CostingTotals(Record):
    internal_cost: Amount = Decimal(0)
    customer_total: Amount = Decimal(0)
    profit: Amount = Decimal(0)
    margin_pct: Amount = Decimal(0)
    vat_amount: Amount = Decimal(0)


class CostingData(Record):
    quote_id: str
    beers: List[DrinkBreakdownItem] = Field(default_factory=list)
    cocktails: List[DrinkBreakdownItem] = Field(default_factory=list)
    wines: WineSection = Field(default_factory=WineSection)
    extras: List[DrinkBreakdownItem] = Field(default_factory=list)
    overheads: Overheads = Field(default_factory=Overheads)
    totals: CostingTotals = Field(default_factory=CostingTotals)


# ---------------------------------------------------------------------------
# Booking
# ---------------------------------------------------------------------------


class Booking(Record):
    id: str
    quote_id: str
    customer: Customer = Field(default_factory=Customer)
    event: EventInfo = Field(default_factory=EventInfo)
    total: Amount = Decimal(0)  # snapshot taken at acceptance
    deposit_paid: Amount = Decimal(0)
    payment_status: PaymentStatus = "Pending"
    status: BookingStatus = "Confirmed"
    archived: bool = False
    created_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Invoice output
# ---------------------------------------------------------------------------


class InvoiceLine(Record):
    description: str
    amount: Amount = Decimal(0)
    visible: bool = True  # False: render description only, no amount


class Invoice(Record):
    lines: List[InvoiceLine] = Field(default_factory=list)
    totals: Totals = Field(default_factory=Totals)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class BusinessInfo(Record):
    name: str = "The Beautiful Booze Club"
    address: str = ""
    logo_url: Optional[str] = None


class CurrencySettings(Record):
    default: Currency = "EUR"
    gbp_rate: Amount = Decimal("0.85")


class VatSettings(Record):
    default_enabled: bool = True
    default_rate: Amount = Decimal(23)


class TravelSettings(Record):
    default_mpg: Amount = Decimal(35)
    cost_per_mile: OptionalAmount = None


class HourlyRates(Record):
    staff_work: Amount = Decimal(25)
    staff_travel: Amount = Decimal(15)


class BeerTable(Record):
    customer_price: Amount = Decimal("4.00")


class CocktailTable(Record):
    customer_price: Amount = Decimal("10.00")


class WineTable(Record):
    bottle_cost: Amount = Decimal(10)
    glasses_per_bottle: Amount = Decimal(4)
    customer_price_per_glass: Amount = Decimal("8.00")


class CostTables(Record):
    beer: BeerTable = Field(default_factory=BeerTable)
    cocktail: CocktailTable = Field(default_factory=CocktailTable)
    wine: WineTable = Field(default_factory=WineTable)


class ClassPricing(Record):
    """Internal cost per head for each cocktail class tier."""

    classic_per_head: Amount = Decimal("5.40")
    luxury_per_head: Amount = Decimal("7.40")
    ultimate_per_head: Amount = Decimal("10.10")


class Settings(Record):
    business: BusinessInfo = Field(default_factory=BusinessInfo)
    currency: CurrencySettings = Field(default_factory=CurrencySettings)
    vat: VatSettings = Field(default_factory=VatSettings)
    travel: TravelSettings = Field(default_factory=TravelSettings)
    hourly_rates: HourlyRates = Field(default_factory=HourlyRates)
    cost_tables: CostTables = Field(default_factory=CostTables)
    class_pricing: ClassPricing = Field(default_factory=ClassPricing)
