"""
Summary statistics shared by the dashboard and the PDF report.
"""

from typing import Any, Iterable, Optional

from auric_ledger.store.models import PriceStats, Quote, UnitSelection, to_finite
from .units import active_price


def finite_values(values: Iterable[Any]) -> list[float]:
    """Keep only finite numbers, in order."""
    result = []
    for value in values:
        number = to_finite(value)
        if number is not None:
            result.append(number)
    return result


def history_values(
    history: Iterable[Quote], metal: str, selection: UnitSelection
) -> list[Optional[float]]:
    """Active price of each history point, None where absent."""
    return [active_price(quote, metal, selection) for quote in history]


def compute_stats(values: Iterable[Any]) -> PriceStats:
    """Min, max and mean of the finite values; all zero when there are none."""
    nums = finite_values(values)
    if not nums:
        return PriceStats(min=0.0, max=0.0, avg=0.0)
    return PriceStats(min=min(nums), max=max(nums), avg=sum(nums) / len(nums))


def history_stats(history: Iterable[Quote], metal: str, selection: UnitSelection) -> PriceStats:
    return compute_stats(history_values(history, metal, selection))
