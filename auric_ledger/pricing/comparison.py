"""
Day-over-day comparison.
"""

from typing import Any, Optional

from auric_ledger.store.models import ComparisonResult, Quote, UnitSelection, to_finite
from .units import active_price, price_field

DIRECTION_UP = "up"
DIRECTION_DOWN = "down"
DIRECTION_NEUTRAL = "neutral"


def direction_of(difference: float) -> str:
    """Classify a raw price difference."""
    if difference > 0:
        return DIRECTION_UP
    if difference < 0:
        return DIRECTION_DOWN
    return DIRECTION_NEUTRAL


def compare_prices(today: Any, yesterday: Any) -> Optional[ComparisonResult]:
    """
    Compare two prices.

    Returns None when either price is missing or non-finite. A yesterday price
    of zero keeps the difference and direction but leaves the percentage unknown.
    """
    today_price = to_finite(today)
    yesterday_price = to_finite(yesterday)
    if today_price is None or yesterday_price is None:
        return None

    difference = today_price - yesterday_price
    percentage_change = None
    if yesterday_price != 0:
        percentage_change = (difference / yesterday_price) * 100

    return ComparisonResult(
        difference=difference,
        percentage_change=percentage_change,
        direction=direction_of(difference),
    )


def compare_quotes(
    today: Optional[Quote],
    yesterday: Optional[Quote],
    metal: str,
    selection: UnitSelection,
) -> Optional[ComparisonResult]:
    """Compare two quotes of the same metal under one unit selection."""
    return compare_prices(
        active_price(today, metal, selection),
        active_price(yesterday, metal, selection),
    )


def payload_prices(
    payload: Any, metal: str, selection: UnitSelection
) -> tuple[Optional[float], Optional[float]]:
    """(today, yesterday) prices for the selection; None where absent or malformed."""
    if not isinstance(payload, dict):
        return None, None

    today_prices = payload.get("today_prices")
    yesterday_prices = payload.get("yesterday_prices")
    field = price_field(metal, selection.unit)
    today = today_prices.get(field) if isinstance(today_prices, dict) else None
    yesterday = yesterday_prices.get(field) if isinstance(yesterday_prices, dict) else None
    return to_finite(today), to_finite(yesterday)


def comparison_from_payload(
    payload: Any, metal: str, selection: UnitSelection
) -> Optional[ComparisonResult]:
    """Compare using the API's {today_prices, yesterday_prices} shape; None if malformed."""
    today, yesterday = payload_prices(payload, metal, selection)
    return compare_prices(today, yesterday)
