from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...calculators.costing import drink_cost, drink_revenue, net_after_vat
from ...fx import FxQuote, convert_for_display, display_rate
from ...invoice import CURRENCY_SYMBOLS, calculate_invoice, summarize_selections
from ...models import CostingData, DrinkBreakdownItem, Quote, Settings
from ...utils import fmt_number, money, round2, to_decimal


Variant = Literal["customer", "owner"]

_VARIANTS: Dict[str, Dict[str, Any]] = {
    "customer": {
        "title": "Customer Quote",
        "subtitle": "Tailored experience for your event",
        "note": "",
        "include_internal": False,
        "suffix": "Customer",
    },
    "owner": {
        "title": "Owner Quote",
        "subtitle": "Full operational view",
        "note": "Owner copy includes staffing, travel, and profitability details.",
        "include_internal": True,
        "suffix": "Owner",
    },
}

# Extras grouped under their own heading in the owner costing table
_EXTRA_CATEGORIES = [
    ("Custom items", {"customLine"}),
    ("Cocktail Making Class", {"quoteDerivedClass"}),
    ("Boozy Brunch", {"quoteDerivedBrunch"}),
    ("Custom Package", {"quoteDerivedGuestFee"}),
]


def document_filename(quote: Quote, variant: Variant = "customer") -> str:
    name = re.sub(r"\s+", "-", quote.customer.name.strip()) or "customer"
    when = quote.event.date or date.today().isoformat()
    return f"BB-Quote-{name}-{when}-{_VARIANTS[variant]['suffix']}.html"


def _category(label: str, items: List[DrinkBreakdownItem]) -> Dict[str, Any]:
    cost = round2(drink_cost(items))
    revenue = round2(drink_revenue(items))
    margin = (revenue - cost) / revenue * Decimal(100) if revenue > 0 else Decimal(0)
    return {
        "label": label,
        "selection": summarize_selections(items),
        "cost": cost,
        "revenue": revenue,
        "margin_pct": round2(margin),
        "empty": not items and cost == 0 and revenue == 0,
    }


def costing_categories(costing: CostingData) -> List[Dict[str, Any]]:
    """Owner view rows: the three drink groups always, extras groups when used."""
    rows = [
        _category("Beers", costing.beers),
        _category("Cocktails", costing.cocktails),
        _category("Wine", [*costing.wines.red, *costing.wines.white]),
    ]
    grouped: set = set()
    for label, sources in _EXTRA_CATEGORIES:
        grouped |= sources
        rows.append(_category(label, [e for e in costing.extras if e.source in sources]))
    rows.append(_category("Extras", [e for e in costing.extras if e.source not in grouped]))
    return [r for i, r in enumerate(rows) if i < 3 or not r["empty"]]


def _fx_source(quote: Quote, fx: Optional[FxQuote]) -> str:
    if quote.fx_rate is not None and quote.fx_rate > 0:
        return "Quote rate"
    if fx is not None and fx.rate > 0:
        return f"{fx.source}, {fx.fetched_at:%Y-%m-%d %H:%M}"
    return "Settings rate"


def _environment() -> Environment:
    tmpl_dir = Path(__file__).resolve().parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(tmpl_dir)),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_quote_document(
    quote: Quote,
    settings: Settings,
    costing: Optional[CostingData] = None,
    variant: Variant = "customer",
    fx: Optional[FxQuote] = None,
) -> str:
    """HTML quote for the customer or the owner.

    The owner copy lists internal lines and, when a costing record is given,
    a profit and costing section. Converted figures are display-only.
    """
    config = _VARIANTS[variant]
    include_internal = config["include_internal"]
    invoice = calculate_invoice(quote, costing, include_internal=include_internal)
    symbol = CURRENCY_SYMBOLS.get(quote.currency, "€")

    rate = display_rate(quote, settings, fx)
    converted = convert_for_display(invoice.totals, rate, quote.currency) if rate > 0 else None
    alt_symbol = CURRENCY_SYMBOLS[converted.currency] if converted is not None else ""

    def alt(value) -> Optional[Decimal]:
        if rate <= 0:
            return None
        value = to_decimal(value)
        return round2(value / rate if quote.currency == "GBP" else value * rate)

    owner_costing = None
    if variant == "owner" and costing is not None:
        net_vat = net_after_vat(costing.totals)
        owner_costing = {
            "categories": costing_categories(costing),
            "overheads": [
                ("Staff wages", costing.overheads.staff_wages),
                ("Staff travel", costing.overheads.staff_travel),
                ("Petrol", costing.overheads.petrol),
            ],
            "totals": costing.totals,
            "vat_rate": costing.overheads.vat_rate,
            "net_after_vat": net_vat,
            "profit_alt": alt(costing.totals.profit),
            "net_after_vat_alt": alt(net_vat),
        }

    template = _environment().get_template("quote.html.j2")
    return template.render(
        title=config["title"],
        subtitle=config["subtitle"],
        note=config["note"],
        issued=date.today().isoformat(),
        business=settings.business,
        quote=quote,
        lines=invoice.lines,
        totals=invoice.totals,
        vat_enabled=quote.vat.enabled,
        vat_rate=fmt_number(quote.vat.rate),
        converted=converted,
        fx_source=_fx_source(quote, fx),
        owner_costing=owner_costing,
        format_money=lambda x: money(x, symbol),
        format_alt=lambda x: money(x, alt_symbol),
        fmt=fmt_number,
    )
