"""
Chart axis scaling.
"""

from typing import Any, Iterable

from auric_ledger.store.models import ChartRange
from .stats import finite_values

DEFAULT_RANGE = ChartRange(min=0.0, max=100.0)
PADDING_RATIO = 0.15
MIN_PADDING = 1.0


def chart_range(values: Iterable[Any]) -> ChartRange:
    """
    Padded [min, max] for a price series.

    Padding is 15% of the spread but at least 1, so a flat series still gets
    headroom. The lower bound never goes below zero.
    """
    nums = finite_values(values)
    if not nums:
        return DEFAULT_RANGE

    low = min(nums)
    high = max(nums)
    padding = max((high - low) * PADDING_RATIO, MIN_PADDING)
    return ChartRange(min=max(0.0, low - padding), max=high + padding)
