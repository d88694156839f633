"""
Default costing records, settings propagation and quote → costing mirroring.
"""

from decimal import Decimal

from bar_quote_engine.logic.defaults import (
    apply_costing_defaults,
    create_default_costing,
    currency_converter,
    load_costing,
)
from bar_quote_engine.logic.mirroring import (
    extras_from_quote,
    extras_signature,
    merge_extras,
    overheads_from_quote,
    sync_costing_with_quote,
)
from bar_quote_engine.models import (
    BoozyBrunchLine,
    ClassLine,
    CustomLine,
    DrinkBreakdownItem,
    GuestFeeLine,
    Settings,
    VatConfig,
)
from bar_quote_engine.normalize.costing import update_drink


class TestDefaultCosting:
    def test_seeded_from_settings(self, wedding_quote, settings):
        costing = create_default_costing(wedding_quote, settings)
        assert [b.id for b in costing.beers] == ["coors", "heineken", "corona", "moretti"]
        assert all(b.customer_price == Decimal(4) and b.qty == 0 for b in costing.beers)
        assert costing.cocktails == []
        assert costing.wines.red[0].cost == Decimal("2.5")
        assert costing.wines.white[0].customer_price == Decimal(8)
        assert costing.wines.bottle_counts.red == 0
        assert costing.overheads.vat_rate == Decimal(23)

    def test_custom_lines_become_extras(self, wedding_quote, settings):
        costing = create_default_costing(wedding_quote, settings)
        assert len(costing.extras) == 1
        extra = costing.extras[0]
        assert extra.name == "Prosecco tower"
        assert extra.source == "customLine"
        assert extra.customer_price == Decimal(200)

    def test_gbp_quote_converts_presets(self, wedding_quote):
        settings = Settings.model_validate({"currency": {"default": "GBP", "gbpRate": "0.80"}})
        quote = wedding_quote.model_copy(update={"currency": "GBP"})
        costing = create_default_costing(quote, settings)
        assert costing.beers[0].customer_price == Decimal("3.2")
        assert currency_converter(quote, settings)(Decimal(10)) == Decimal("8.00")

    def test_quote_fx_rate_wins_over_settings(self, wedding_quote, settings):
        quote = wedding_quote.model_copy(update={"currency": "GBP", "fx_rate": Decimal("0.9")})
        assert currency_converter(quote, settings)(Decimal(10)) == Decimal("9.0")

    def test_load_costing_creates_when_missing(self, wedding_quote, settings):
        costing = load_costing(wedding_quote, settings)
        assert costing.quote_id == wedding_quote.id
        assert len(costing.beers) == 4


class TestApplyCostingDefaults:
    def _costing(self, quote, settings):
        costing = create_default_costing(quote, settings)
        costing = update_drink(costing, "beers", "heineken", "customer_price", "4.50")
        return costing.model_copy(
            update={
                "cocktails": [
                    DrinkBreakdownItem(id="ct-0", name="Pornstar Martini", qty=0, cost="2.95", customer_price=10),
                    DrinkBreakdownItem(id="ct-1", name="Espresso Martini", qty=3, cost="2.70", customer_price=10),
                    DrinkBreakdownItem(id="ct-2", name="House Cosmo", qty=0, cost="2.50", customer_price=10),
                    DrinkBreakdownItem(id="custom-1", name="Signature Sour", qty=0, cost=3, customer_price=10),
                ]
            }
        )

    def test_reprices_only_rows_at_the_old_preset(self, wedding_quote, settings):
        new = settings.model_copy(deep=True)
        new.cost_tables.beer.customer_price = Decimal(5)
        costing = apply_costing_defaults(self._costing(wedding_quote, settings), wedding_quote, new, previous=settings)
        prices = {b.id: b.customer_price for b in costing.beers}
        assert prices["coors"] == Decimal(5)
        assert prices["heineken"] == Decimal("4.5")

    def test_drops_unused_preset_cocktails_only(self, wedding_quote, settings):
        costing = apply_costing_defaults(self._costing(wedding_quote, settings), wedding_quote, settings)
        ids = [c.id for c in costing.cocktails]
        assert "ct-0" not in ids
        assert "ct-1" in ids  # has a quantity
        assert "ct-2" in ids  # renamed
        assert "custom-1" in ids  # not a preset

    def test_wine_cost_follows_bottle_cost(self, wedding_quote, settings):
        new = settings.model_copy(deep=True)
        new.cost_tables.wine.bottle_cost = Decimal(12)
        costing = apply_costing_defaults(create_default_costing(wedding_quote, settings), wedding_quote, new)
        assert costing.wines.bottle_cost == Decimal(12)
        assert costing.wines.red[0].cost == Decimal(3)

    def test_gbp_rate_change_reprices_and_recosts(self, wedding_quote):
        quote = wedding_quote.model_copy(update={"currency": "GBP"})
        old = Settings.model_validate({"currency": {"default": "GBP", "gbpRate": "0.85"}})
        new = Settings.model_validate({"currency": {"default": "GBP", "gbpRate": "0.80"}})
        costing = create_default_costing(quote, old)
        costing = update_drink(costing, "beers", "heineken", "customer_price", "4.50")
        assert costing.beers[0].customer_price == Decimal("3.4")

        costing = apply_costing_defaults(costing, quote, new, previous=old)
        beers = {b.id: b for b in costing.beers}
        assert beers["coors"].customer_price == Decimal("3.2")
        assert beers["coors"].cost == Decimal("0.496")
        assert beers["heineken"].customer_price == Decimal("4.5")
        assert beers["heineken"].cost == Decimal("0.688")
        assert costing.wines.red[0].customer_price == Decimal("6.4")
        assert costing.wines.red[0].cost == Decimal(2)


class TestMirroring:
    def test_overheads_from_quote(self, staffed_quote):
        overheads = overheads_from_quote(staffed_quote)
        assert overheads.staff_wages == Decimal("150.00")
        assert overheads.staff_travel == Decimal("30.00")
        assert overheads.petrol == Decimal("22.73")
        assert overheads.vat_rate == Decimal(23)

    def test_overhead_vat_rate_zero_when_vat_disabled(self, staffed_quote):
        quote = staffed_quote.model_copy(update={"vat": VatConfig(enabled=False, rate=23)})
        assert overheads_from_quote(quote).vat_rate == Decimal(0)

    def test_extras_from_bundle_and_custom_lines(self, wedding_quote, settings):
        quote = wedding_quote.model_copy(
            update={
                "lines": [
                    ClassLine(tier="Luxury", price_per_guest=49, guests=10),
                    BoozyBrunchLine(price_per_guest=45, guests=8),
                    GuestFeeLine(price_per_guest=10, guests=40),
                    CustomLine(description="Ice", unit_price=20, owner_cost=5, qty=2),
                ]
            }
        )
        extras = extras_from_quote(quote, settings)
        assert [e.source for e in extras] == [
            "quoteDerivedClass",
            "quoteDerivedBrunch",
            "quoteDerivedGuestFee",
            "customLine",
        ]
        assert extras[0].cost == Decimal("7.40")
        assert extras[3].cost == Decimal(5)

    def test_merge_extras_sums_matching_rows(self):
        rows = [
            DrinkBreakdownItem(id="a", name="Ice", qty=1, cost=5, customer_price=20, source="customLine"),
            DrinkBreakdownItem(id="b", name="Ice", qty=2, cost="5.00", customer_price=20, source="customLine"),
            DrinkBreakdownItem(id="c", name="Ice", qty=1, cost=6, customer_price=20, source="customLine"),
        ]
        merged = merge_extras(rows)
        assert len(merged) == 2
        assert merged[0].qty == Decimal(3)

    def test_signature_ignores_number_formatting(self):
        a = [DrinkBreakdownItem(id="a", name="Ice", qty=1, cost=5, customer_price=20)]
        b = [DrinkBreakdownItem(id="b", name="Ice", qty="1.0", cost="5.00", customer_price="20.000")]
        assert extras_signature(a) == extras_signature(b)

    def test_sync_follows_quote_changes_and_keeps_user_rows(self, wedding_quote, settings):
        costing = create_default_costing(wedding_quote, settings)
        user_row = DrinkBreakdownItem(id="u1", name="Garnish", qty=1, cost=3, customer_price=0)
        costing = costing.model_copy(update={"extras": [*costing.extras, user_row]})

        changed = wedding_quote.model_copy(
            update={"lines": [*wedding_quote.lines, ClassLine(tier="Classic", price_per_guest=39, guests=12)]}
        )
        synced = sync_costing_with_quote(costing, changed, settings)
        sources = [e.source for e in synced.extras]
        assert sources == ["customLine", "quoteDerivedClass", None]
        assert synced.extras[-1].id == "u1"

    def test_sync_is_stable_when_quote_unchanged(self, staffed_quote, settings):
        costing = create_default_costing(staffed_quote, settings)
        once = sync_costing_with_quote(costing, staffed_quote, settings)
        twice = sync_costing_with_quote(once, staffed_quote, settings)
        assert twice.model_dump() == once.model_dump()
        assert once.overheads.staff_wages == Decimal("150.00")
