from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass(frozen=True)
class DrinkPreset:
    id: str
    name: str
    cost: Decimal  # internal cost per unit, EUR


BEER_PRESETS: List[DrinkPreset] = [
    DrinkPreset("coors", "Coors Light (bottle)", Decimal("0.62")),
    DrinkPreset("heineken", "Heineken Lager (bottle)", Decimal("0.86")),
    DrinkPreset("corona", "Corona Extra (bottle)", Decimal("1.04")),
    DrinkPreset("moretti", "Birra Moretti Lager (bottle)", Decimal("0.93")),
]

_COCKTAILS = [
    ("Pornstar Martini", "2.95"),
    ("Espresso Martini", "2.70"),
    ("Cosmopolitan", "2.50"),
    ("Margarita", "2.80"),
    ("Martini", "2.10"),
    ("Aviation", "2.65"),
    ("Boulevardier", "3.20"),
    ("Bacardi Cocktail", "2.45"),
    ("Clover Club", "2.55"),
    ("Daiquiri", "2.30"),
    ("Manhattan", "3.10"),
    ("White Lady", "2.40"),
    ("Woo Woo", "2.35"),
    ("Old Fashioned", "3.00"),
    ("Whiskey Sour", "2.75"),
    ("Mimosa", "1.85"),
    ("Kir", "2.00"),
    ("French 75", "2.60"),
    ("Mojito", "2.30"),
    ("Gin Basil Smash", "2.45"),
    ("Irish Coffee", "2.70"),
    ("Pina Colada", "2.65"),
    ("Tequila Sunrise", "2.50"),
    ("Sex on the Beach", "2.40"),
    ("Bramble", "2.55"),
    ("Paloma", "2.60"),
    ("Penicillin", "2.85"),
]

COCKTAIL_PRESETS: List[DrinkPreset] = [
    DrinkPreset(f"ct-{idx}", name, Decimal(cost)) for idx, (name, cost) in enumerate(_COCKTAILS)
]

# Customer-facing list prices used by the quote editor
PACKAGE_PRICES: Dict[str, Decimal] = {
    "Lily": Decimal(650),
    "Orchid": Decimal(750),
    "Rose": Decimal(950),
}

CLASS_PRICES: Dict[str, Decimal] = {
    "Classic": Decimal(39),
    "Luxury": Decimal(49),
    "Ultimate": Decimal(60),
}

BRUNCH_PRICE_PER_GUEST = Decimal(45)
DEFAULT_PETROL_PRICE_PER_LITRE = Decimal("1.75")


def find_cocktail(preset_id: str) -> Optional[DrinkPreset]:
    for preset in COCKTAIL_PRESETS:
        if preset.id == preset_id:
            return preset
    return None
