"""
Cross-metal ticker: one day-over-day comparison per tracked metal.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Optional

from auric_ledger.pricing.comparison import (
    DIRECTION_DOWN,
    DIRECTION_UP,
    comparison_from_payload,
)
from auric_ledger.pricing.formatting import format_amount
from auric_ledger.pricing.units import DEFAULT_CARAT
from auric_ledger.store.models import ComparisonResult, Metal, UnitSelection
from .fetcher import FetchError, QuoteClient

logger = logging.getLogger(__name__)

TICKER_SELECTION_GOLD = UnitSelection(unit="1g", carat=DEFAULT_CARAT)
TICKER_SELECTION = UnitSelection(unit="1g")


def ticker_message(metal: Metal, comparison: ComparisonResult) -> str:
    """One ticker line, e.g. '▲ Gold (22K) increased by ₹12.50 (0.17%)'."""
    suffix = f" ({DEFAULT_CARAT}K)" if metal.is_gold else ""
    label = f"{metal.label}{suffix}"

    if comparison.percentage_change is None:
        percentage = "n/a"
    else:
        percentage = f"{abs(comparison.percentage_change):.2f}%"

    change = f"₹{format_amount(abs(comparison.difference))}"
    if comparison.direction == DIRECTION_UP:
        return f"▲ {label} increased by {change} ({percentage})"
    if comparison.direction == DIRECTION_DOWN:
        return f"▼ {label} decreased by {change} ({percentage})"
    return f"⬤ {label} - No change"


class TickerBoard:
    """
    Populates comparisons for all metals in the background.

    Fetches complete in any order and each failure is isolated, so the
    ``comparisons`` map may be partially filled at any time.
    """

    def __init__(self, client: QuoteClient, max_workers: int = 4):
        self.client = client
        self.max_workers = max_workers
        self.comparisons: dict[str, ComparisonResult] = {}
        self.errors: dict[str, str] = {}

    def refresh(self, metals: list[Metal]) -> dict[str, ComparisonResult]:
        """
        Fetch a comparison for every metal.

        Returns:
            Snapshot of the comparisons map after all fetches settled
        """
        if not metals:
            return dict(self.comparisons)

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="ticker"
        ) as executor:
            futures = {executor.submit(self._fetch_one, metal): metal for metal in metals}
            for future in as_completed(futures):
                metal = futures[future]
                try:
                    comparison = future.result()
                except FetchError as e:
                    logger.warning(f"Ticker fetch failed for {metal.symbol}: {e}")
                    self.errors[metal.symbol] = str(e)
                    continue
                except Exception as e:
                    logger.error(f"Ticker update failed for {metal.symbol}: {e}")
                    self.errors[metal.symbol] = str(e)
                    continue

                self.errors.pop(metal.symbol, None)
                if comparison is not None:
                    self.comparisons[metal.symbol] = comparison

        return dict(self.comparisons)

    def messages(self, metals: list[Metal]) -> list[str]:
        """Ticker lines for the metals that have a comparison so far."""
        lines = []
        for metal in metals:
            comparison = self.comparisons.get(metal.symbol)
            if comparison is not None:
                lines.append(ticker_message(metal, comparison))
        return lines

    def _fetch_one(self, metal: Metal) -> Optional[ComparisonResult]:
        selection = TICKER_SELECTION_GOLD if metal.is_gold else TICKER_SELECTION
        payload = self.client.get_comparison(metal.symbol, selection.carat)
        return comparison_from_payload(payload, metal.symbol, selection)
