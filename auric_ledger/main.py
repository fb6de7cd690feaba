"""
Main application entry point.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from auric_ledger.app import AuricApp
from auric_ledger.config import AppConfig
from auric_ledger.data.fetcher import FetchError, QuoteClient
from auric_ledger.data.ticker import TickerBoard
from auric_ledger.notifiers.base import AlertDispatcher
from auric_ledger.notifiers.daily import DailySummaryNotifier
from auric_ledger.notifiers.local import LocalNotifier, ToastCenter
from auric_ledger.notifiers.remote import RemoteAlertNotifier
from auric_ledger.reports.export import DownloadSlot
from auric_ledger.reports.pdf import fetch_logo
from auric_ledger.rules.engine import RuleEngine
from auric_ledger.store.connection import KeyValueStore, SqliteStore
from auric_ledger.store.repository import AlertRuleRepository, PreferencesRepository

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Wired application components."""

    app: AuricApp
    engine: RuleEngine
    dispatcher: AlertDispatcher
    preferences: PreferencesRepository
    toasts: ToastCenter
    ticker: TickerBoard
    daily: DailySummaryNotifier
    store: KeyValueStore


def build_services(config: AppConfig, store: Optional[KeyValueStore] = None) -> Services:
    """Wire every component from configuration."""
    if store is None:
        store = SqliteStore(config.store.path)
        store.initialize()

    preferences = PreferencesRepository(store, default_dark_mode=config.reports.dark_mode)
    client = QuoteClient(config.api.base_url, timeout=config.api.timeout_seconds)

    toasts = ToastCenter(duration_ms=config.alerts.toast_duration_ms)
    local = LocalNotifier(toasts)
    remote = None
    if config.notifications.email_enabled:
        remote = RemoteAlertNotifier(
            config.api.base_url,
            browser_notifications=config.notifications.platform_notifications,
        )
    dispatcher = AlertDispatcher(local, remote, preferences)

    engine = RuleEngine(
        AlertRuleRepository(store),
        dispatcher,
        cooldown_minutes=config.alerts.cooldown_minutes,
        target_tolerance_pct=config.alerts.target_tolerance_pct,
    )

    logo_loader = None
    if config.reports.logo_url:
        logo_loader = partial(fetch_logo, config.reports.logo_url)

    app = AuricApp(
        client,
        engine,
        preferences,
        DownloadSlot(config.reports.output_dir),
        logo_loader=logo_loader,
        brand=config.reports.brand,
        site_url=config.reports.site_url,
    )

    return Services(
        app=app,
        engine=engine,
        dispatcher=dispatcher,
        preferences=preferences,
        toasts=toasts,
        ticker=TickerBoard(client, max_workers=config.advanced.max_workers),
        daily=DailySummaryNotifier(local, preferences),
        store=store,
    )


def run_check(services: Services) -> int:
    """
    Refresh every tracked metal, evaluating alerts for each.

    Returns:
        Number of alerts triggered
    """
    try:
        metals = services.app.client.list_metals()
    except FetchError as e:
        logger.error(f"Unable to load metals: {e}")
        return 0

    _, carat, unit = services.preferences.get_selection()
    triggered = 0
    for metal in metals:
        snapshot = services.app.refresh(metal, unit, carat, remember=False)
        if snapshot.error:
            continue
        triggered += len(snapshot.alerts)

    services.ticker.refresh(metals)
    services.daily.maybe_notify(services.ticker.messages(metals))
    return triggered


def main():
    """CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Auric Ledger price alert check")
    parser.add_argument(
        "--config", default="config.yaml", help="Path to config file"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")

    args = parser.parse_args()

    # Load config
    from auric_ledger.config import load_config

    config = load_config(args.config)

    # Setup logging
    log_level = logging.DEBUG if args.debug else getattr(logging, config.advanced.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    services = build_services(config)
    try:
        triggered = run_check(services)
        logger.info(f"Check complete, {triggered} alert(s) triggered")
        for toast in services.toasts.active():
            print(f"[{toast.title}] {toast.message}")
    finally:
        services.dispatcher.shutdown(wait=True)


if __name__ == "__main__":
    main()
