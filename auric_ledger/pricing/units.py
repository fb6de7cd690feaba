"""
Unit and purity model.

Gold is quoted per 1g and 8g (one sovereign), every other metal per 1g and
1kg. Per-carat prices arrive precomputed in ``Quote.carat_prices``; the purity
multipliers below are informational and are never applied here.
"""

from dataclasses import dataclass
from typing import Optional

from auric_ledger.data.symbols import is_gold
from auric_ledger.store.models import Quote, UnitSelection, to_finite

PRICE_FIELD_1G = "price_1g"
PRICE_FIELD_8G = "price_8g"
PRICE_FIELD_KG = "price_per_kg"

UNIT_FIELDS = {
    "1g": PRICE_FIELD_1G,
    "8g": PRICE_FIELD_8G,
    "1kg": PRICE_FIELD_KG,
}

CARAT_PURITY = {
    "18": 0.75,
    "22": 0.916,
    "24": 1.0,
}
DEFAULT_CARAT = "22"


@dataclass(frozen=True)
class UnitOption:
    """A selectable unit and its label."""

    value: str
    label: str


@dataclass(frozen=True)
class CaratOption:
    """A selectable gold purity."""

    value: str
    label: str
    purity: float


GOLD_UNITS = (UnitOption("1g", "1 gram"), UnitOption("8g", "8 grams"))
BASE_UNITS = (UnitOption("1g", "1 gram"), UnitOption("1kg", "1 kilogram"))

GOLD_CARATS = (
    CaratOption("18", "18 Carat", CARAT_PURITY["18"]),
    CaratOption("22", "22 Carat (Primary)", CARAT_PURITY["22"]),
    CaratOption("24", "24 Carat", CARAT_PURITY["24"]),
)


def units_for_metal(metal: Optional[str]) -> list[UnitOption]:
    """Ordered valid units for a metal; empty when no metal is selected."""
    if not metal:
        return []
    if is_gold(metal):
        return list(GOLD_UNITS)
    return list(BASE_UNITS)


def normalize_selection(
    metal: str, unit: Optional[str] = None, carat: Optional[str] = None
) -> UnitSelection:
    """
    Coerce a unit/carat choice into one that is valid for the metal.

    An unknown unit falls back to the metal's first unit. Carat applies to gold
    only and defaults to 22.
    """
    valid = [option.value for option in units_for_metal(metal)] or ["1g"]
    if unit not in valid:
        unit = valid[0]

    if is_gold(metal):
        carat = carat if carat in CARAT_PURITY else DEFAULT_CARAT
    else:
        carat = None

    return UnitSelection(unit=unit, carat=carat)


def price_field(metal: str, unit: str) -> str:
    """Quote field holding the price for this metal and unit."""
    selection = normalize_selection(metal, unit)
    return UNIT_FIELDS[selection.unit]


def active_price(quote: Optional[Quote], metal: str, selection: UnitSelection) -> Optional[float]:
    """The quote's price under the selection, or None if absent."""
    if quote is None:
        return None
    return to_finite(getattr(quote, price_field(metal, selection.unit)))


def carat_price(quote: Optional[Quote], carat: str) -> float:
    """Per-gram price for one carat; 0 when the quote lacks it."""
    if quote is None or not quote.carat_prices:
        return 0.0
    return quote.carat_prices.get(carat) or 0.0


def carat_suffix(metal: str, selection: UnitSelection) -> str:
    """" (22K)" for gold, empty otherwise."""
    if is_gold(metal) and selection.carat:
        return f" ({selection.carat}K)"
    return ""
