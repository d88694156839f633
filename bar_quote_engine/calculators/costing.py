from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from ..models import CostingData, CostingTotals, DrinkBreakdownItem
from ..utils import round2, to_decimal


def drink_cost(items: Iterable[DrinkBreakdownItem]) -> Decimal:
    return sum((to_decimal(i.qty) * to_decimal(i.cost) for i in items), Decimal(0))


def drink_revenue(items: Iterable[DrinkBreakdownItem]) -> Decimal:
    return sum((to_decimal(i.qty) * to_decimal(i.customer_price) for i in items), Decimal(0))


def drink_qty(items: Iterable[DrinkBreakdownItem]) -> Decimal:
    return sum((to_decimal(i.qty) for i in items), Decimal(0))


def all_drinks(costing: CostingData) -> List[DrinkBreakdownItem]:
    return [
        *costing.beers,
        *costing.cocktails,
        *costing.wines.red,
        *costing.wines.white,
        *costing.extras,
    ]


def overheads_total(costing: CostingData) -> Decimal:
    oh = costing.overheads
    return to_decimal(oh.staff_wages) + to_decimal(oh.staff_travel) + to_decimal(oh.petrol)


def calculate_costing(costing: CostingData) -> CostingTotals:
    """Internal cost, revenue, profit, margin and VAT of a costing record.

    Money is rounded to 2 dp here and only here; item quantities, costs and
    prices arrive already rounded to 4 dp by the normalizer.
    """
    items = all_drinks(costing)
    internal_cost = drink_cost(items) + overheads_total(costing)
    customer_total = drink_revenue(items)
    profit = customer_total - internal_cost
    margin_pct = profit / customer_total * Decimal(100) if customer_total > 0 else Decimal(0)
    vat_rate = to_decimal(costing.overheads.vat_rate)
    vat_amount = customer_total * vat_rate / Decimal(100) if vat_rate > 0 else Decimal(0)
    return CostingTotals(
        internal_cost=round2(internal_cost),
        customer_total=round2(customer_total),
        profit=round2(profit),
        margin_pct=round2(margin_pct),
        vat_amount=round2(vat_amount),
    )


def net_after_vat(totals: CostingTotals) -> Decimal:
    return to_decimal(totals.profit) - to_decimal(totals.vat_amount)
