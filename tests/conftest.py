"""
Shared pytest fixtures for the bar quote engine test suite.

All tests are pure unit tests: no network, and file storage only under
pytest's tmp_path.
"""

from decimal import Decimal

import pytest

from bar_quote_engine.models import (
    CostingData,
    Customer,
    CustomLine,
    DrinkBreakdownItem,
    EventInfo,
    PackageLine,
    PetrolLine,
    Quote,
    Settings,
    StaffTravelLine,
    StaffWorkLine,
    VatConfig,
)
from bar_quote_engine.store import QuoteStore


@pytest.fixture
def settings():
    """Factory settings: VAT 23%, beer 4.00, cocktail 10.00, wine 8.00/glass."""
    return Settings()


@pytest.fixture
def wedding_quote():
    """Lily package (650) + custom item (200) with VAT on at 23%."""
    return Quote(
        id="q-wedding",
        customer=Customer(name="Aoife Byrne", email="aoife@example.com"),
        event=EventInfo(type="Wedding", location="Kilkenny", date="2026-06-20", guests=80),
        lines=[
            PackageLine(name="Lily", unit_price=650, qty=1),
            CustomLine(description="Prosecco tower", unit_price=200, qty=1),
        ],
        vat=VatConfig(enabled=True, rate=23),
    )


@pytest.fixture
def staffed_quote(wedding_quote):
    """Wedding quote plus staff work, staff travel and petrol lines."""
    return wedding_quote.model_copy(
        update={
            "id": "q-staffed",
            "lines": [
                *wedding_quote.lines,
                StaffWorkLine(hourly_rate=25, hours=6),
                StaffTravelLine(hourly_rate=15, hours=2),
                PetrolLine(model="mpg", miles=100, mpg=35, price_per_litre=Decimal("1.75")),
            ],
        }
    )


@pytest.fixture
def beer_costing():
    """Ten Coors at cost 0.62, sold at 3.00; no overheads, VAT 0."""
    return CostingData(
        quote_id="q-beer",
        beers=[DrinkBreakdownItem(id="coors", name="Coors Light (bottle)", qty=10, cost="0.62", customer_price=3)],
    )


@pytest.fixture
def store():
    return QuoteStore()


@pytest.fixture
def file_store(tmp_path):
    return QuoteStore(tmp_path / "data")
