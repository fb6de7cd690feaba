"""
Metal symbols and display labels.
"""

from typing import Optional

METAL_LABELS = {
    "XAU": "Gold",
    "XAG": "Silver",
    "XPT": "Platinum",
    "XPD": "Palladium",
    "HG": "Copper",
}

GOLD_MARKERS = ("gold", "xau")


def is_gold(metal: Optional[str]) -> bool:
    """Check whether a metal symbol or name refers to gold."""
    if not metal:
        return False
    name = metal.lower()
    return any(marker in name for marker in GOLD_MARKERS)


def metal_label(symbol: str, display_name: Optional[str] = None) -> str:
    """Human label for a metal symbol, falling back to the symbol itself."""
    if display_name:
        return display_name
    return METAL_LABELS.get(symbol, symbol)


def parse_metals(payload: list[dict]) -> list[tuple[str, Optional[str]]]:
    """
    Parse the metals list returned by the quote API.

    Args:
        payload: List of {"metal_name": ..., "display_name": ...} dicts

    Returns:
        Unique (symbol, display_name) pairs in API order
    """
    metals = []
    seen = set()
    for item in payload:
        symbol = (item.get("metal_name") or "").strip()
        if not symbol or symbol in seen:
            continue
        seen.add(symbol)
        metals.append((symbol, item.get("display_name")))
    return metals
