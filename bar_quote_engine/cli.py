from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .calculators.costing import net_after_vat
from .calculators.totals import with_totals
from .config import load_settings
from .fx import FxCache, HttpRateLookup, get_eur_to_gbp_rate
from .invoice import CURRENCY_SYMBOLS, calculate_invoice
from .logging_config import configure_logging, get_logger
from .logic.defaults import load_costing
from .models import CostingData, Quote
from .output.exporters.html import document_filename, render_quote_document
from .utils import money


app = typer.Typer(add_completion=False, no_args_is_help=True, help="Bar quote engine CLI")
logger = get_logger(__name__)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    configure_logging(logging.DEBUG if verbose else logging.INFO)


def _load_quote(path: Path) -> Quote:
    try:
        return with_totals(Quote.model_validate(json.loads(path.read_text(encoding="utf-8"))))
    except (OSError, ValueError, ValidationError) as e:
        typer.echo(f"Could not read quote {path}: {e}", err=True)
        raise typer.Exit(code=2)


def _load_costing(path: Optional[Path], quote: Quote, settings) -> CostingData:
    stored = None
    if path is not None:
        try:
            stored = CostingData.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, ValidationError) as e:
            typer.echo(f"Could not read costing {path}: {e}", err=True)
            raise typer.Exit(code=2)
    return load_costing(quote, settings, stored)


@app.command()
def price(
    quote_file: Path = typer.Argument(..., help="Quote JSON file"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings YAML"),
    costing_file: Optional[Path] = typer.Option(None, "--costing", help="Costing JSON file"),
    owner: bool = typer.Option(False, help="Include staff and travel lines"),
):
    """Print invoice lines and totals for a quote."""
    settings = load_settings(settings_file)
    quote = _load_quote(quote_file)
    costing = _load_costing(costing_file, quote, settings) if costing_file else None
    invoice = calculate_invoice(quote, costing, include_internal=owner)
    symbol = CURRENCY_SYMBOLS.get(quote.currency, "€")
    for line in invoice.lines:
        amount = money(line.amount, symbol) if line.visible else ""
        typer.echo(f"{line.description:<60} {amount:>12}")
    typer.echo(f"{'Subtotal':<60} {money(invoice.totals.net, symbol):>12}")
    if quote.vat.enabled:
        typer.echo(f"{'VAT':<60} {money(invoice.totals.vat, symbol):>12}")
    typer.echo(f"{'Total':<60} {money(invoice.totals.gross, symbol):>12}")


@app.command()
def costing(
    quote_file: Path = typer.Argument(..., help="Quote JSON file"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings YAML"),
    costing_file: Optional[Path] = typer.Option(None, "--costing", help="Costing JSON file"),
    out: Optional[Path] = typer.Option(None, help="Write the synced costing record here"),
):
    """Print the profitability summary of a quote's costing."""
    settings = load_settings(settings_file)
    quote = _load_quote(quote_file)
    record = _load_costing(costing_file, quote, settings)
    symbol = CURRENCY_SYMBOLS.get(quote.currency, "€")
    t = record.totals
    typer.echo(f"Internal cost:  {money(t.internal_cost, symbol)}")
    typer.echo(f"Customer total: {money(t.customer_total, symbol)}")
    typer.echo(f"Profit:         {money(t.profit, symbol)} ({t.margin_pct}%)")
    typer.echo(f"VAT:            {money(t.vat_amount, symbol)}")
    typer.echo(f"Net after VAT:  {money(net_after_vat(t), symbol)}")
    if out:
        out.write_text(record.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
        typer.echo(f"Wrote {out}")


@app.command()
def render(
    quote_file: Path = typer.Argument(..., help="Quote JSON file"),
    variant: str = typer.Option("customer", help="customer or owner"),
    out: Optional[Path] = typer.Option(None, help="Output HTML path"),
    settings_file: Optional[Path] = typer.Option(None, "--settings", help="Settings YAML"),
    costing_file: Optional[Path] = typer.Option(None, "--costing", help="Costing JSON file"),
    live_fx: bool = typer.Option(False, help="Look up the EUR→GBP rate online"),
    fx_cache: Optional[Path] = typer.Option(None, help="JSON file caching the last good rate"),
):
    """Render a customer or owner HTML quote."""
    if variant not in ("customer", "owner"):
        typer.echo("Variant must be 'customer' or 'owner'", err=True)
        raise typer.Exit(code=2)
    settings = load_settings(settings_file)
    quote = _load_quote(quote_file)
    record = _load_costing(costing_file, quote, settings) if (costing_file or variant == "owner") else None
    fx = None
    if live_fx or fx_cache:
        fx = get_eur_to_gbp_rate(HttpRateLookup() if live_fx else None, FxCache(fx_cache))
    html = render_quote_document(quote, settings, record, variant=variant, fx=fx)
    out_file = out or quote_file.parent / document_filename(quote, variant)
    out_file.write_text(html, encoding="utf-8")
    logger.info("Rendered %s quote for %s", variant, quote.id)
    typer.echo(f"Wrote {out_file}")


if __name__ == "__main__":  # pragma: no cover
    app()
