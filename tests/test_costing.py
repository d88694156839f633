"""
Costing calculator, normalizer and costing edit operations.
"""

from decimal import Decimal

from bar_quote_engine.calculators.costing import calculate_costing, net_after_vat
from bar_quote_engine.catalog import find_cocktail
from bar_quote_engine.models import (
    BottleCounts,
    CostingData,
    DrinkBreakdownItem,
    Overheads,
    WineSection,
)
from bar_quote_engine.normalize.costing import (
    add_beer_line,
    add_cocktail_from_preset,
    add_cocktail_line,
    add_extra_line,
    normalize_costing,
    remove_cocktail,
    set_wine_bottles,
    update_drink,
    update_drink_meta,
)


def _wine_costing(bottle_counts=None, red_qty=0):
    return CostingData(
        quote_id="q-wine",
        wines=WineSection(
            bottle_counts=bottle_counts,
            glasses_per_bottle=4,
            bottle_cost=10,
            red=[DrinkBreakdownItem(id="wine-red", name="Red Wine (glass)", qty=red_qty, cost="2.5", customer_price=8)],
            white=[DrinkBreakdownItem(id="wine-white", name="White Wine (glass)", cost="2.5", customer_price=8)],
        ),
    )


class TestCalculateCosting:
    def test_beer_only_costing(self, beer_costing):
        totals = calculate_costing(beer_costing)
        assert totals.internal_cost == Decimal("6.20")
        assert totals.customer_total == Decimal("30.00")
        assert totals.profit == Decimal("23.80")
        assert totals.margin_pct == Decimal("79.33")
        assert totals.vat_amount == Decimal(0)

    def test_overheads_count_as_internal_cost(self, beer_costing):
        costing = beer_costing.model_copy(
            update={"overheads": Overheads(staff_wages=150, staff_travel=30, petrol="22.73")}
        )
        totals = calculate_costing(costing)
        assert totals.internal_cost == Decimal("208.93")
        assert totals.profit == Decimal("-178.93")

    def test_zero_revenue_has_zero_margin(self):
        costing = CostingData(quote_id="q", overheads=Overheads(staff_wages=100))
        totals = calculate_costing(costing)
        assert totals.margin_pct == Decimal(0)
        assert totals.profit == Decimal("-100.00")

    def test_vat_on_customer_total(self, beer_costing):
        costing = beer_costing.model_copy(update={"overheads": Overheads(vat_rate=23)})
        totals = calculate_costing(costing)
        assert totals.vat_amount == Decimal("6.90")
        assert net_after_vat(totals) == Decimal("16.90")


class TestNormalizeCosting:
    def test_attaches_fresh_totals(self, beer_costing):
        normalized = normalize_costing(beer_costing)
        assert normalized.totals.customer_total == Decimal("30.00")

    def test_idempotent(self, beer_costing):
        messy = beer_costing.model_copy(
            update={
                "cocktails": [DrinkBreakdownItem(id="c1", name="Daiquiri", qty="2.333333", cost="2.30001", customer_price=10)],
                "wines": _wine_costing(red_qty=10).wines,
            }
        )
        once = normalize_costing(messy)
        twice = normalize_costing(once)
        assert twice.model_dump() == once.model_dump()

    def test_negative_quantities_clamped(self, beer_costing):
        costing = beer_costing.model_copy(
            update={"cocktails": [DrinkBreakdownItem(id="c1", name="Kir", qty=-3, cost=2, customer_price=10)]}
        )
        normalized = normalize_costing(costing)
        assert normalized.cocktails[0].qty == Decimal(0)
        assert normalized.totals.customer_total == Decimal("30.00")

    def test_wine_glasses_follow_bottle_counts(self):
        costing = normalize_costing(_wine_costing(bottle_counts=BottleCounts(red=3, white="1.5")))
        assert costing.wines.red[0].qty == Decimal(12)
        assert costing.wines.white[0].qty == Decimal(6)

    def test_bottle_counts_derived_from_legacy_glass_quantity(self):
        costing = normalize_costing(_wine_costing(bottle_counts=None, red_qty=10))
        assert costing.wines.bottle_counts.red == Decimal("2.50")
        assert costing.wines.red[0].qty == Decimal(10)
        assert costing.wines.bottle_counts.white == Decimal(0)

    def test_beer_quantity_kept_exact(self):
        costing = CostingData(
            quote_id="q",
            beers=[DrinkBreakdownItem(id="coors", name="Coors", qty="7.123456", customer_price=4)],
        )
        assert normalize_costing(costing).beers[0].qty == Decimal("7.123456")

    def test_cocktail_quantity_rounded_to_4dp(self):
        costing = CostingData(
            quote_id="q",
            cocktails=[DrinkBreakdownItem(id="c", name="Kir", qty="1.123456", customer_price=10)],
        )
        assert normalize_costing(costing).cocktails[0].qty == Decimal("1.1235")


class TestEditOperations:
    def test_update_drink_quantity(self, beer_costing):
        costing = update_drink(beer_costing, "beers", "coors", "qty", 20)
        assert costing.beers[0].qty == Decimal(20)
        assert costing.totals.customer_total == Decimal("60.00")

    def test_update_drink_price_ignores_unknown_id(self, beer_costing):
        costing = update_drink(beer_costing, "beers", "missing", "customer_price", 9)
        assert costing.beers[0].customer_price == Decimal(3)

    def test_update_drink_meta_renames(self, beer_costing):
        costing = update_drink_meta(beer_costing, "beers", "coors", "name", "Coors (can)")
        assert costing.beers[0].name == "Coors (can)"

    def test_set_wine_bottles(self):
        costing = set_wine_bottles(_wine_costing(bottle_counts=BottleCounts()), "white", 2)
        assert costing.wines.bottle_counts.white == Decimal("2.00")
        assert costing.wines.white[0].qty == Decimal(8)
        assert costing.totals.customer_total == Decimal("64.00")

    def test_set_wine_bottles_negative_is_zero(self):
        costing = set_wine_bottles(_wine_costing(bottle_counts=BottleCounts(red=2)), "red", -5)
        assert costing.wines.red[0].qty == Decimal(0)

    def test_add_lines(self, beer_costing):
        costing = add_extra_line(add_beer_line(beer_costing, 4))
        costing = add_cocktail_line(costing, 10)
        assert [b.name for b in costing.beers][-1] == "Custom beer"
        assert costing.beers[-1].customer_price == Decimal(4)
        assert costing.cocktails[-1].customer_price == Decimal(10)
        assert costing.extras[-1].name == "Custom item"

    def test_add_cocktail_from_preset_then_reset(self, beer_costing):
        preset = find_cocktail("ct-0")
        costing = add_cocktail_from_preset(beer_costing, preset, 0, 10)
        assert len(costing.cocktails) == 1
        assert costing.cocktails[0].qty == Decimal(1)
        assert costing.cocktails[0].cost == preset.cost

        costing = add_cocktail_from_preset(costing, preset, 5, 12)
        assert len(costing.cocktails) == 1
        assert costing.cocktails[0].qty == Decimal(5)
        assert costing.cocktails[0].customer_price == Decimal(12)

    def test_remove_cocktail(self, beer_costing):
        costing = add_cocktail_from_preset(beer_costing, find_cocktail("ct-1"), 2, 10)
        costing = remove_cocktail(costing, "ct-1")
        assert costing.cocktails == []
        assert costing.totals.customer_total == Decimal("30.00")
