"""Exchange-rate lookup and dual-currency display.

Display only: nothing here feeds back into a quote's canonical totals.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError

from .logging_config import get_logger
from .models import Amount, Currency, Quote, Settings, Totals, utcnow
from .utils import round2, to_decimal


logger = get_logger(__name__)

FALLBACK_EUR_TO_GBP = Decimal("0.85")
RATE_URL = "https://api.exchangerate.host/latest"


class FxQuote(BaseModel):
    rate: Amount
    fetched_at: datetime = Field(default_factory=utcnow)
    source: str = "Fallback"


class FxLookupError(Exception):
    """Raised by a rate lookup that could not produce a usable rate."""


class RateLookup(Protocol):
    def fetch_rate(self) -> FxQuote: ...


class HttpRateLookup:
    """EUR→GBP rate from exchangerate.host."""

    def __init__(self, client: Optional[httpx.Client] = None, url: str = RATE_URL, timeout: float = 5.0):
        self.client = client
        self.url = url
        self.timeout = timeout

    def fetch_rate(self) -> FxQuote:
        client = self.client or httpx.Client(timeout=self.timeout)
        try:
            resp = client.get(self.url, params={"base": "EUR", "symbols": "GBP"})
            resp.raise_for_status()
            data = resp.json()
        finally:
            if self.client is None:
                client.close()
        rate = to_decimal(((data or {}).get("rates") or {}).get("GBP"))
        if rate <= 0:
            raise FxLookupError("Invalid FX rate in response")
        return FxQuote(rate=rate, source="exchangerate.host")


class FxCache:
    """Last good rate, kept in memory and optionally mirrored to a JSON file."""

    def __init__(self, path: Optional[Path] = None):
        self.path = path
        self._value: Optional[FxQuote] = None

    def read(self) -> Optional[FxQuote]:
        if self._value is not None:
            return self._value
        if self.path is None or not self.path.exists():
            return None
        try:
            self._value = FxQuote.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("Ignoring unreadable FX cache %s: %s", self.path, e)
            return None
        return self._value

    def write(self, value: FxQuote) -> None:
        self._value = value
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(value.model_dump(mode="json")), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not write FX cache %s: %s", self.path, e)


def get_eur_to_gbp_rate(lookup: Optional[RateLookup] = None, cache: Optional[FxCache] = None) -> FxQuote:
    """Fresh rate if the lookup succeeds, else the cached rate, else 0.85."""
    cached = cache.read() if cache is not None else None
    if lookup is not None:
        try:
            fresh = lookup.fetch_rate()
        except Exception as e:  # noqa: BLE001
            logger.info("FX lookup failed, falling back: %s", e)
        else:
            if cache is not None:
                cache.write(fresh)
            return fresh
    if cached is not None:
        return cached.model_copy(update={"source": cached.source or "Cached"})
    return FxQuote(rate=FALLBACK_EUR_TO_GBP, source="Fallback")


def display_rate(quote: Quote, settings: Settings, fx: Optional[FxQuote] = None) -> Decimal:
    """Rate for the secondary currency: the quote's own rate, then a live rate, then settings."""
    if quote.fx_rate is not None and quote.fx_rate > 0:
        return to_decimal(quote.fx_rate)
    if fx is not None and fx.rate > 0:
        return to_decimal(fx.rate)
    return to_decimal(settings.currency.gbp_rate)


class ConvertedTotals(BaseModel):
    currency: Currency
    rate: Amount
    net: Amount
    vat: Amount
    gross: Amount


def convert_for_display(totals: Totals, rate, currency: Currency = "EUR") -> ConvertedTotals:
    """Totals in the other currency. EUR totals multiply by the EUR→GBP rate,
    GBP totals divide by it; a non-positive rate leaves the figures unchanged.
    """
    rate = to_decimal(rate)

    def convert(value) -> Decimal:
        value = to_decimal(value)
        if rate <= 0:
            return round2(value)
        return round2(value / rate if currency == "GBP" else value * rate)

    return ConvertedTotals(
        currency="EUR" if currency == "GBP" else "GBP",
        rate=rate,
        net=convert(totals.net),
        vat=convert(totals.vat),
        gross=convert(totals.gross),
    )
