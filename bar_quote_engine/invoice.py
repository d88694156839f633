from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from .calculators.costing import drink_qty, drink_revenue
from .calculators.lines import line_total
from .calculators.totals import invoice_totals
from .models import (
    BUNDLE_KINDS,
    INTERNAL_KINDS,
    CostingData,
    DrinkBreakdownItem,
    Invoice,
    InvoiceLine,
    Quote,
)
from .utils import fmt_number


CURRENCY_SYMBOLS = {"EUR": "€", "GBP": "£"}


def summarize_selections(items: List[DrinkBreakdownItem]) -> str:
    """'3 Heineken Lager (bottle), 2 Corona Extra (bottle)'; zero-qty rows skipped."""
    return ", ".join(f"{fmt_number(i.qty)} {i.name}" for i in items if i.qty > 0)


def describe_line(line, include_internal: bool = True, symbol: str = "€") -> str:
    kind = line.kind
    if kind == "package":
        return f"{line.name} package × {fmt_number(line.qty)}"
    if kind == "class":
        return f"{line.tier} cocktail class · {fmt_number(line.guests)} guests"
    if kind == "boozyBrunch":
        return f"Boozy brunch · {fmt_number(line.guests)} guests"
    if kind == "guestFee":
        text = f"Custom package · {fmt_number(line.guests)} cocktails"
        if include_internal:
            text += f" @ {symbol}{fmt_number(line.price_per_guest)}/cocktail"
        return text
    if kind == "custom":
        return f"{line.description} × {fmt_number(line.qty)}"
    if kind in ("staffWork", "staffTravel"):
        label = "Staff work" if kind == "staffWork" else "Staff travel"
        return f"{label} · {fmt_number(line.hours)} hrs @ {symbol}{fmt_number(line.hourly_rate)}/h"
    if kind == "petrol":
        miles = fmt_number(line.miles)
        if line.model == "mpg":
            return (
                f"Travel ({miles} miles · {fmt_number(line.mpg)} mpg · "
                f"{symbol}{fmt_number(line.price_per_litre)}/L)"
            )
        return f"Travel ({miles} miles · {symbol}{fmt_number(line.cost_per_mile)}/mile)"
    return "Line item"


def _with_selection(label: str, qty: Decimal, unit: str, selection: str) -> str:
    if not qty:
        return label
    inner = f"{fmt_number(qty)}{unit}"
    if selection:
        inner += f": {selection}"
    return f"{label} ({inner})"


def build_invoice_lines(
    quote: Quote,
    costing: Optional[CostingData] = None,
    include_internal: bool = False,
) -> List[InvoiceLine]:
    """Project a quote (and optionally its costing) into presentable invoice lines.

    Customer view (include_internal=False) drops staff and petrol lines and
    omits per-unit rates on bundle lines. Cocktail revenue is not charged on
    the customer view when the quote already has a bundle line, since the
    bundle price includes the cocktails; the owner view always shows it.

    Order: quote lines, selection detail lines, beverage revenue lines.
    """
    symbol = CURRENCY_SYMBOLS.get(quote.currency, "€")
    base_lines: List[InvoiceLine] = []
    for line in quote.lines:
        if not include_internal and line.kind in INTERNAL_KINDS:
            continue
        amount = line_total(line)
        if amount > 0:
            base_lines.append(
                InvoiceLine(description=describe_line(line, include_internal, symbol), amount=amount)
            )

    if costing is None:
        return base_lines

    has_bundle = any(line.kind in BUNDLE_KINDS for line in quote.lines)
    revenue_lines: List[InvoiceLine] = []

    beer_revenue = drink_revenue(costing.beers)
    if beer_revenue > 0:
        desc = _with_selection("Beers", drink_qty(costing.beers), " bottles", summarize_selections(costing.beers))
        revenue_lines.append(InvoiceLine(description=desc, amount=beer_revenue))

    cocktail_revenue = drink_revenue(costing.cocktails)
    cocktail_selection = summarize_selections(costing.cocktails)
    if cocktail_revenue > 0 and (include_internal or not has_bundle):
        desc = _with_selection("Cocktails", drink_qty(costing.cocktails), "", cocktail_selection)
        revenue_lines.append(InvoiceLine(description=desc, amount=cocktail_revenue))

    wine_items = [*costing.wines.red, *costing.wines.white]
    wine_revenue = drink_revenue(wine_items)
    if wine_revenue > 0:
        desc = _with_selection(
            "Wine by the glass", drink_qty(wine_items), " glasses", summarize_selections(wine_items)
        )
        revenue_lines.append(InvoiceLine(description=desc, amount=wine_revenue))

    detail_lines: List[InvoiceLine] = []
    if cocktail_selection:
        detail_lines.append(
            InvoiceLine(description=f"Cocktails selection: {cocktail_selection}", amount=0, visible=False)
        )

    return [*base_lines, *detail_lines, *revenue_lines]


def calculate_invoice(
    quote: Quote,
    costing: Optional[CostingData] = None,
    include_internal: bool = False,
) -> Invoice:
    lines = build_invoice_lines(quote, costing, include_internal)
    return Invoice(lines=lines, totals=invoice_totals(lines, quote.vat))
