"""
Quote API client.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from auric_ledger.store.models import Metal, Quote
from .symbols import is_gold, parse_metals

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the quote API cannot be reached or returns an error."""

    pass


@dataclass
class MonthlyHistory:
    """One month of quotes plus the months that have data."""

    history: list[Quote]
    available_months: list[str] = field(default_factory=list)
    selected_month: Optional[str] = None


def dedupe_by_date(quotes: list[Quote]) -> list[Quote]:
    """Keep the first quote per date, sorted ascending by date."""
    unique = {}
    for quote in quotes:
        if quote.date and quote.date not in unique:
            unique[quote.date] = quote
    return [unique[d] for d in sorted(unique)]


class QuoteClient:
    """Fetches quotes from the Auric Ledger backend."""

    def __init__(
        self,
        api_base_url: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_metals(self) -> list[Metal]:
        """
        Fetch the tracked metals.

        Returns:
            Metals in API order

        Raises:
            FetchError: If the request fails
        """
        data = self._get("/get-latest-price")
        return [Metal(symbol, name) for symbol, name in parse_metals(data.get("metals") or [])]

    def get_latest(self, metal: str, carat: Optional[str] = None) -> Optional[Quote]:
        """
        Fetch the latest quote for a metal.

        Args:
            metal: Metal symbol (e.g., "XAU")
            carat: Carat for gold; ignored for other metals

        Returns:
            Latest Quote, or None if the metal has no data yet
        """
        data = self._get("/get-latest-price", self._params(metal, carat))
        latest = data.get("latest")
        if not latest:
            return None
        return Quote.from_dict(latest)

    def get_comparison(self, metal: str, carat: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Fetch the {today_prices, yesterday_prices} comparison payload."""
        data = self._get("/compare-yesterday", self._params(metal, carat))
        return data.get("comparison")

    def get_weekly_history(self, metal: str, carat: Optional[str] = None) -> list[Quote]:
        """Fetch the last seven days of quotes, oldest first."""
        data = self._get("/weekly-history", self._params(metal, carat))
        return dedupe_by_date([Quote.from_dict(row) for row in data.get("history") or []])

    def get_monthly_history(
        self,
        metal: str,
        carat: Optional[str] = None,
        month: Optional[str] = None,
    ) -> MonthlyHistory:
        """
        Fetch one month of quotes.

        Args:
            metal: Metal symbol
            carat: Carat for gold
            month: "YYYY-MM"; the API picks the latest month when omitted
        """
        params = self._params(metal, carat)
        if month:
            params["month"] = month

        data = self._get("/monthly-history", params)
        return MonthlyHistory(
            history=dedupe_by_date([Quote.from_dict(row) for row in data.get("history") or []]),
            available_months=list(data.get("availableMonths") or []),
            selected_month=data.get("selectedMonth"),
        )

    def _params(self, metal: str, carat: Optional[str]) -> dict[str, str]:
        params = {"metal": metal}
        if carat and is_gold(metal):
            params["carat"] = carat
        return params

    def _get(self, path: str, params: Optional[dict[str, str]] = None) -> dict[str, Any]:
        url = f"{self.api_base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise FetchError(f"Price service timed out: {path}") from e
        except requests.RequestException as e:
            raise FetchError(f"Unable to reach price service: {e}") from e

        if not response.ok:
            message = response.reason or "error"
            try:
                message = response.json().get("message") or message
            except ValueError:
                pass
            raise FetchError(f"Price service returned HTTP {response.status_code}: {message}")

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Price service returned invalid JSON for {path}") from e

        if not isinstance(data, dict):
            raise FetchError(f"Unexpected response shape for {path}")
        return data
