"""
Alert rule conditions.
"""

from abc import ABC, abstractmethod
from typing import Optional

from auric_ledger.pricing.formatting import format_money
from auric_ledger.store.models import to_finite


class Rule(ABC):
    """A price condition that may fire for one observation."""

    @abstractmethod
    def check(
        self,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float] = None,
    ) -> Optional[str]:
        """
        Test the condition.

        Args:
            metal_name: Metal being observed
            current_price: Fresh price
            yesterday_price: Previous day's price, if known

        Returns:
            Alert message if the condition holds, otherwise None
        """
        pass


class TargetPriceRule(Rule):
    """Fires when the price is within a tolerance band around a target."""

    def __init__(self, target: float, tolerance_pct: float = 1.0):
        self.target = target
        self.tolerance_pct = tolerance_pct

    def check(
        self,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float] = None,
    ) -> Optional[str]:
        band = self.target * self.tolerance_pct / 100
        low = self.target - band
        high = self.target + band
        if not low <= current_price <= high:
            return None

        return (
            f"{metal_name} has reached your target price of {format_money(self.target)}. "
            f"Current price: {format_money(current_price)}"
        )


class PercentageChangeRule(Rule):
    """Fires when the move since yesterday is at least the threshold, either way."""

    def __init__(self, threshold: float):
        self.threshold = threshold

    def check(
        self,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float] = None,
    ) -> Optional[str]:
        yesterday = to_finite(yesterday_price)
        if yesterday is None or yesterday <= 0:
            return None

        pct = (current_price - yesterday) / yesterday * 100
        if abs(pct) < self.threshold:
            return None

        direction = "up" if pct > 0 else "down"
        return (
            f"{metal_name} is {direction} {abs(pct):.2f}% since yesterday "
            f"(alert at {self.threshold:g}%). "
            f"Current price: {format_money(current_price)}, "
            f"yesterday: {format_money(yesterday)}"
        )
