from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..models import InvoiceLine, Quote, Totals, VatConfig
from ..utils import round2, to_decimal
from .lines import line_total


def vat_on(net: Decimal, vat: VatConfig) -> Decimal:
    if not vat.enabled:
        return Decimal(0)
    return net * to_decimal(vat.rate) / Decimal(100)


def totals_from_net(net: Decimal, vat: VatConfig) -> Totals:
    # Round net first so gross == net + vat holds on the stored figures
    net_r = round2(net)
    vat_r = round2(vat_on(net_r, vat))
    return Totals(net=net_r, vat=vat_r, gross=net_r + vat_r)


def sum_lines(lines) -> Decimal:
    return sum((line_total(line) for line in lines), Decimal(0))


def quote_totals(quote: Quote) -> Totals:
    """Canonical totals of a quote: a pure function of its lines and VAT config."""
    return totals_from_net(sum_lines(quote.lines), quote.vat)


def with_totals(quote: Quote) -> Quote:
    return quote.model_copy(update={"totals": quote_totals(quote)})


def invoice_totals(lines: Iterable[InvoiceLine], vat: VatConfig) -> Totals:
    """Totals of the presented (filtered/bundled) invoice lines."""
    net = sum((to_decimal(line.amount) for line in lines), Decimal(0))
    return totals_from_net(net, vat)
