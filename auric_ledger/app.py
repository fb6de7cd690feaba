"""
Application service: one refresh of a metal's dashboard.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from auric_ledger.data.fetcher import FetchError, QuoteClient
from auric_ledger.pricing.charts import chart_range
from auric_ledger.pricing.comparison import comparison_from_payload, payload_prices
from auric_ledger.pricing.stats import history_stats, history_values
from auric_ledger.pricing.units import active_price, normalize_selection
from auric_ledger.reports.export import DownloadLink, DownloadSlot, export_csv
from auric_ledger.reports.pdf import export_pdf
from auric_ledger.rules.engine import RuleEngine
from auric_ledger.store.models import (
    AlertEvaluation,
    ChartRange,
    ComparisonResult,
    Metal,
    PriceStats,
    Quote,
    UnitSelection,
)
from auric_ledger.store.repository import PreferencesRepository

logger = logging.getLogger(__name__)


@dataclass
class DashboardSnapshot:
    """Everything derived from one refresh; fields stay empty where data didn't load."""

    metal: Metal
    selection: UnitSelection
    latest: Optional[Quote] = None
    comparison: Optional[ComparisonResult] = None
    weekly: list[Quote] = field(default_factory=list)
    monthly: list[Quote] = field(default_factory=list)
    available_months: list[str] = field(default_factory=list)
    selected_month: Optional[str] = None
    chart_range: Optional[ChartRange] = None
    weekly_stats: Optional[PriceStats] = None
    monthly_stats: Optional[PriceStats] = None
    alerts: list[AlertEvaluation] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def current_price(self) -> Optional[float]:
        return active_price(self.latest, self.metal.symbol, self.selection)

    @property
    def last_updated(self) -> Optional[str]:
        return self.latest.date if self.latest else None


class AuricApp:
    """Main Auric Ledger application."""

    def __init__(
        self,
        client: QuoteClient,
        engine: RuleEngine,
        preferences: PreferencesRepository,
        downloads: DownloadSlot,
        clock: Callable[[], datetime] = datetime.now,
        logo_loader: Optional[Callable[[], bytes]] = None,
        brand: str = "Auric Ledger",
        site_url: str = "https://auric-ledger.vercel.app/",
    ):
        self.client = client
        self.engine = engine
        self.preferences = preferences
        self.downloads = downloads
        self.clock = clock
        self.logo_loader = logo_loader
        self.brand = brand
        self.site_url = site_url

    def refresh(
        self,
        metal: Metal,
        unit: Optional[str] = None,
        carat: Optional[str] = None,
        month: Optional[str] = None,
        remember: bool = True,
    ) -> DashboardSnapshot:
        """
        Load quotes for a metal, derive analytics and evaluate alert rules.

        Transport failures don't raise: the snapshot keeps whatever loaded and
        reports one human-readable error. With ``remember`` the selection is
        saved as the user's preference.
        """
        selection = normalize_selection(metal.symbol, unit, carat)
        if remember:
            self.preferences.save_selection(metal.symbol, selection.carat, selection.unit)
        snapshot = DashboardSnapshot(metal=metal, selection=selection)

        payload = None
        monthly = None
        try:
            snapshot.latest = self.client.get_latest(metal.symbol, selection.carat)
            payload = self.client.get_comparison(metal.symbol, selection.carat)
            snapshot.weekly = self.client.get_weekly_history(metal.symbol, selection.carat)
            monthly = self.client.get_monthly_history(metal.symbol, selection.carat, month)
        except FetchError as e:
            logger.error(f"Error loading {metal.symbol}: {e}")
            snapshot.error = str(e)

        snapshot.comparison = comparison_from_payload(payload, metal.symbol, selection)
        if monthly is not None:
            snapshot.monthly = monthly.history
            snapshot.available_months = monthly.available_months
            snapshot.selected_month = monthly.selected_month

        snapshot.chart_range = chart_range(
            history_values(snapshot.weekly + snapshot.monthly, metal.symbol, selection)
        )
        snapshot.weekly_stats = history_stats(snapshot.weekly, metal.symbol, selection)
        snapshot.monthly_stats = history_stats(snapshot.monthly, metal.symbol, selection)

        snapshot.alerts = self._check_alerts(metal, selection, payload, snapshot)
        return snapshot

    def _check_alerts(
        self,
        metal: Metal,
        selection: UnitSelection,
        payload: Any,
        snapshot: DashboardSnapshot,
    ) -> list[AlertEvaluation]:
        current = snapshot.current_price
        if current is None:
            return []

        _, yesterday = payload_prices(payload, metal.symbol, selection)
        return self.engine.process_observation(metal.symbol, current, yesterday)

    def export_csv(self, snapshot: DashboardSnapshot) -> Optional[DownloadLink]:
        """Export the weekly history as CSV; None when there is nothing to export."""
        return export_csv(
            snapshot.weekly,
            snapshot.metal,
            snapshot.selection,
            self.downloads,
            today=self.clock().date(),
        )

    def export_pdf(self, snapshot: DashboardSnapshot) -> Optional[DownloadLink]:
        """Export the weekly history as a PDF report; None when there is nothing to export."""
        return export_pdf(
            snapshot.weekly,
            snapshot.metal,
            snapshot.selection,
            snapshot.comparison,
            snapshot.last_updated,
            self.downloads,
            generated_at=self.clock(),
            dark_mode=self.preferences.dark_mode,
            logo_loader=self.logo_loader,
            brand=self.brand,
            site_url=self.site_url,
        )
