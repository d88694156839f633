from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from ..catalog import BEER_PRESETS, COCKTAIL_PRESETS, DrinkPreset
from ..logging_config import get_logger
from ..models import (
    BottleCounts,
    CostingData,
    DrinkBreakdownItem,
    Quote,
    Settings,
    WineSection,
)
from ..normalize.costing import normalize_costing
from ..utils import round4, to_decimal
from .mirroring import merge_extras, extras_from_quote, overheads_from_quote, sync_costing_with_quote


logger = get_logger(__name__)

Converter = Callable[[Decimal], Decimal]

_BEER_PRESETS_BY_ID = {p.id: p for p in BEER_PRESETS}
_COCKTAIL_PRESETS_BY_ID = {p.id: p for p in COCKTAIL_PRESETS}


def currency_converter(quote: Quote, settings: Settings) -> Converter:
    """Presets are EUR; GBP quotes scale them by the quote's rate, else the settings rate."""
    if quote.currency != "GBP":
        return lambda v: to_decimal(v)
    rate = to_decimal(quote.fx_rate) if quote.fx_rate is not None else to_decimal(settings.currency.gbp_rate)
    return lambda v: to_decimal(v) * rate


@dataclass(frozen=True)
class PresetPrices:
    """Settings cost tables expressed in one quote's currency."""

    beer: Decimal
    cocktail: Decimal
    wine_glass: Decimal
    bottle_cost: Decimal
    glasses_per_bottle: Decimal

    @property
    def cost_per_glass(self) -> Decimal:
        if self.glasses_per_bottle <= 0:
            return Decimal(0)
        return self.bottle_cost / self.glasses_per_bottle


def preset_prices(settings: Settings, convert: Converter) -> PresetPrices:
    tables = settings.cost_tables
    gpb = to_decimal(tables.wine.glasses_per_bottle)
    return PresetPrices(
        beer=round4(convert(tables.beer.customer_price)),
        cocktail=round4(convert(tables.cocktail.customer_price)),
        wine_glass=round4(convert(tables.wine.customer_price_per_glass)),
        bottle_cost=round4(convert(tables.wine.bottle_cost)),
        glasses_per_bottle=gpb if gpb > 0 else Decimal(4),
    )


def _wine_row(colour: str, cost_per_glass: Decimal, customer_price: Decimal) -> DrinkBreakdownItem:
    return DrinkBreakdownItem(
        id=f"wine-{colour.lower()}",
        name=f"{colour} Wine (glass)",
        cost=cost_per_glass,
        customer_price=customer_price,
    )


def create_default_costing(quote: Quote, settings: Settings) -> CostingData:
    """A fresh costing record for a quote, seeded from the settings presets."""
    convert = currency_converter(quote, settings)
    prices = preset_prices(settings, convert)
    beers = [
        DrinkBreakdownItem(id=p.id, name=p.name, cost=convert(p.cost), customer_price=prices.beer)
        for p in BEER_PRESETS
    ]
    costing = CostingData(
        quote_id=quote.id,
        beers=beers,
        cocktails=[],
        wines=WineSection(
            bottle_counts=BottleCounts(),
            glasses_per_bottle=prices.glasses_per_bottle,
            bottle_cost=prices.bottle_cost,
            red=[_wine_row("Red", prices.cost_per_glass, prices.wine_glass)],
            white=[_wine_row("White", prices.cost_per_glass, prices.wine_glass)],
        ),
        extras=merge_extras(extras_from_quote(quote, settings, convert)),
        overheads=overheads_from_quote(quote),
    )
    return normalize_costing(costing)


def load_costing(quote: Quote, settings: Settings, stored: Optional[CostingData] = None) -> CostingData:
    """Stored costing (or a new default one) brought in line with the current quote."""
    base = normalize_costing(stored) if stored is not None else create_default_costing(quote, settings)
    return sync_costing_with_quote(base, quote, settings, currency_converter(quote, settings))


def _at_preset(value: Decimal, preset: Decimal) -> bool:
    return round4(value) == round4(preset)


def _is_preset_artifact(item: DrinkBreakdownItem, known_prices: List[Decimal]) -> bool:
    """Unused preset cocktail row: untouched name, zero qty, price still a preset price."""
    preset = _COCKTAIL_PRESETS_BY_ID.get(item.id)
    if preset is None or item.name != preset.name:
        return False
    if to_decimal(item.qty) != 0:
        return False
    return any(_at_preset(item.customer_price, price) for price in known_prices)


def apply_costing_defaults(
    costing: CostingData,
    quote: Quote,
    settings: Settings,
    previous: Optional[Settings] = None,
) -> CostingData:
    """Push settings prices into a costing record without clobbering custom prices.

    A row is updated only when its customer price still equals the preset
    price of ``previous`` settings (the factory defaults when not given), each
    converted with its own settings' rate. Preset beer and cocktail costs are
    re-converted the same way. Wine cost per glass always follows the settings
    bottle cost. Zero-quantity preset cocktail rows still at a preset price are
    removed; rows with a quantity, renamed rows and custom rows are always kept.
    """
    previous = previous or Settings()
    convert = currency_converter(quote, settings)
    convert_old = currency_converter(quote, previous)
    new = preset_prices(settings, convert)
    old = preset_prices(previous, convert_old)

    def reprice(items: List[DrinkBreakdownItem], old_price: Decimal, new_price: Decimal) -> List[DrinkBreakdownItem]:
        return [
            i.model_copy(update={"customer_price": new_price}) if _at_preset(i.customer_price, old_price) else i
            for i in items
        ]

    def recost(items: List[DrinkBreakdownItem], presets: Dict[str, DrinkPreset]) -> List[DrinkBreakdownItem]:
        out = []
        for i in items:
            preset = presets.get(i.id)
            if preset is not None and _at_preset(i.cost, convert_old(preset.cost)):
                i = i.model_copy(update={"cost": round4(convert(preset.cost))})
            out.append(i)
        return out

    cocktails: List[DrinkBreakdownItem] = []
    for item in recost(reprice(costing.cocktails, old.cocktail, new.cocktail), _COCKTAIL_PRESETS_BY_ID):
        if _is_preset_artifact(item, [old.cocktail, new.cocktail]):
            logger.debug("Dropping unused preset cocktail row %s", item.id)
            continue
        cocktails.append(item)

    def rewine(items: List[DrinkBreakdownItem]) -> List[DrinkBreakdownItem]:
        return [
            i.model_copy(update={"cost": new.cost_per_glass})
            for i in reprice(items, old.wine_glass, new.wine_glass)
        ]

    wines = costing.wines.model_copy(
        update={
            "glasses_per_bottle": new.glasses_per_bottle,
            "bottle_cost": new.bottle_cost,
            "red": rewine(costing.wines.red),
            "white": rewine(costing.wines.white),
        }
    )
    updated = costing.model_copy(
        update={
            "beers": recost(reprice(costing.beers, old.beer, new.beer), _BEER_PRESETS_BY_ID),
            "cocktails": cocktails,
            "wines": wines,
        }
    )
    return normalize_costing(updated)
