"""
CLI commands for Auric Ledger.
"""

import argparse
import logging
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

from auric_ledger.config import AppConfig, load_config
from auric_ledger.data.fetcher import FetchError
from auric_ledger.data.ticker import ticker_message
from auric_ledger.main import Services, build_services, run_check
from auric_ledger.pricing.formatting import format_money
from auric_ledger.pricing.units import GOLD_CARATS, carat_price
from auric_ledger.store.models import ALERT_TYPE_TARGET_PRICE, ALERT_TYPES, AlertRule, Metal

CARAT_CHOICES = [option.value for option in GOLD_CARATS]


def describe_rule(rule: AlertRule) -> str:
    """One-line summary of an alert rule."""
    state = "on" if rule.enabled else "off"
    if rule.type == ALERT_TYPE_TARGET_PRICE:
        condition = f"target {format_money(rule.value)}"
    else:
        condition = f"move of {rule.value:g}%"
    last = rule.last_triggered_at.strftime("%Y-%m-%d %H:%M") if rule.last_triggered_at else "never"
    return f"{rule.id[:8]}  {rule.metal:<6} {condition:<24} [{state}] last: {last}"


def resolve_rule_id(services: Services, prefix: str) -> Optional[str]:
    """Match a full or abbreviated rule id."""
    matches = [rule.id for rule in services.engine.list_rules() if rule.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return None


def find_metal(services: Services, symbol: str) -> Metal:
    """Look up a metal's display name, falling back to the bare symbol."""
    try:
        for metal in services.app.client.list_metals():
            if metal.symbol == symbol:
                return metal
    except FetchError:
        pass
    return Metal(symbol)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auric Ledger CLI")
    parser.add_argument("--config", default="config.yaml", help="Path to config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command")

    # Alert commands
    alerts_parser = subparsers.add_parser("alerts", help="Alert rule management")
    alerts_subparsers = alerts_parser.add_subparsers(dest="action")

    add_parser = alerts_subparsers.add_parser("add", help="Add alert rule")
    add_parser.add_argument("--metal", required=True, help="Metal symbol, e.g. XAU")
    add_parser.add_argument("--type", required=True, choices=list(ALERT_TYPES))
    add_parser.add_argument("--value", required=True, type=float, help="Target price or percent")

    list_parser = alerts_subparsers.add_parser("list", help="List alert rules")
    list_parser.add_argument("--metal", help="Only rules for this metal")

    toggle_parser = alerts_subparsers.add_parser("toggle", help="Enable/disable a rule")
    toggle_parser.add_argument("id", help="Rule ID (prefix is enough)")

    delete_parser = alerts_subparsers.add_parser("delete", help="Delete a rule")
    delete_parser.add_argument("id", help="Rule ID (prefix is enough)")

    # Dashboard commands
    show_parser = subparsers.add_parser("show", help="Show prices for a metal")
    show_parser.add_argument("--metal", help="Metal symbol (defaults to saved selection)")
    show_parser.add_argument("--unit", help="1g, 8g or 1kg")
    show_parser.add_argument("--carat", choices=CARAT_CHOICES, help="Gold purity")
    show_parser.add_argument("--month", help="Month to load, YYYY-MM")

    export_parser = subparsers.add_parser("export", help="Export weekly history")
    export_parser.add_argument("format", choices=["csv", "pdf"])
    export_parser.add_argument("--metal", help="Metal symbol (defaults to saved selection)")
    export_parser.add_argument("--unit", help="1g, 8g or 1kg")
    export_parser.add_argument("--carat", choices=CARAT_CHOICES, help="Gold purity")

    subparsers.add_parser("ticker", help="Day-over-day change for all metals")
    subparsers.add_parser("check", help="Evaluate alerts for all metals")

    # Preference commands
    prefs_parser = subparsers.add_parser("prefs", help="Preferences")
    prefs_subparsers = prefs_parser.add_subparsers(dest="action")
    prefs_subparsers.add_parser("show", help="Show preferences")
    theme_parser = prefs_subparsers.add_parser("theme", help="Set report theme")
    theme_parser.add_argument("mode", choices=["light", "dark"])

    subscribe_parser = subparsers.add_parser("subscribe", help="Email subscription")
    subscribe_parser.add_argument("email", nargs="?", help="Email address")
    subscribe_parser.add_argument(
        "--alerts", action="store_true", help="Also email triggered alerts"
    )
    subscribe_parser.add_argument("--remove", action="store_true", help="Unsubscribe")

    return parser


def _selected_metal(services: Services, symbol: Optional[str]) -> Optional[Metal]:
    saved_metal, _, _ = services.preferences.get_selection()
    symbol = symbol or saved_metal
    if not symbol:
        print("No metal selected; pass --metal")
        return None
    return find_metal(services, symbol)


def run_command(args: argparse.Namespace, services: Services) -> int:
    """Execute a parsed command; returns the process exit code."""
    if args.command == "alerts":
        if args.action == "add":
            try:
                rule = services.engine.add_rule(args.metal, args.type, args.value)
            except ValueError as e:
                print(f"Error: {e}")
                return 1
            print(f"Created alert with ID: {rule.id}")
        elif args.action == "list":
            for rule in services.engine.list_rules(args.metal):
                print(describe_rule(rule))
        elif args.action in ("toggle", "delete"):
            rule_id = resolve_rule_id(services, args.id)
            if rule_id is None:
                print(f"No unique alert matches: {args.id}")
                return 1
            if args.action == "toggle":
                rule = services.engine.toggle_rule(rule_id)
                print(f"Alert {rule_id[:8]} {'enabled' if rule.enabled else 'disabled'}")
            else:
                services.engine.delete_rule(rule_id)
                print(f"Deleted alert {rule_id[:8]}")

    elif args.command == "show":
        metal = _selected_metal(services, args.metal)
        if metal is None:
            return 1
        _, saved_carat, saved_unit = services.preferences.get_selection()
        snapshot = services.app.refresh(
            metal, args.unit or saved_unit, args.carat or saved_carat, args.month
        )
        if snapshot.error:
            print(f"Error: {snapshot.error}")
        print(f"{metal.label} ({snapshot.selection.unit}): {format_money(snapshot.current_price)}")
        if metal.is_gold and snapshot.latest:
            for option in GOLD_CARATS:
                price = format_money(carat_price(snapshot.latest, option.value))
                print(f"  {option.label}: {price} per gram (purity {option.purity:g})")
        if snapshot.comparison:
            print(ticker_message(metal, snapshot.comparison))
        stats = snapshot.weekly_stats
        print(
            f"7-day low {format_money(stats.min)}, high {format_money(stats.max)}, "
            f"average {format_money(stats.avg)}"
        )
        for toast in services.toasts.active():
            print(f"[{toast.title}] {toast.message}")

    elif args.command == "export":
        metal = _selected_metal(services, args.metal)
        if metal is None:
            return 1
        _, saved_carat, saved_unit = services.preferences.get_selection()
        snapshot = services.app.refresh(metal, args.unit or saved_unit, args.carat or saved_carat)
        if args.format == "csv":
            link = services.app.export_csv(snapshot)
        else:
            link = services.app.export_pdf(snapshot)
        if link is None:
            print(snapshot.error or "No history to export")
            return 1
        print(f"Saved {link.label}: {link.path}")

    elif args.command == "check":
        triggered = run_check(services)
        for toast in services.toasts.active():
            print(f"[{toast.title}] {toast.message}")
        print(f"{triggered} alert(s) triggered")

    elif args.command == "ticker":
        try:
            metals = services.app.client.list_metals()
        except FetchError as e:
            print(f"Error: {e}")
            return 1
        services.ticker.refresh(metals)
        for line in services.ticker.messages(metals):
            print(line)

    elif args.command == "prefs":
        if args.action == "theme":
            services.preferences.dark_mode = args.mode == "dark"
            print(f"Theme set to {args.mode}")
        else:
            metal, carat, unit = services.preferences.get_selection()
            print(f"Metal: {metal or '-'}, carat: {carat}, unit: {unit}")
            print(f"Theme: {'dark' if services.preferences.dark_mode else 'light'}")
            print(f"Email: {services.preferences.email_subscription or '-'}")

    elif args.command == "subscribe":
        if args.remove:
            services.preferences.unsubscribe_email()
            print("Unsubscribed")
        elif not args.email:
            print("Email address required")
            return 1
        else:
            try:
                masked = services.preferences.subscribe_email(args.email, args.alerts)
            except ValueError as e:
                print(f"Error: {e}")
                return 1
            print(f"Subscribed {masked}")

    return 0


def main(argv: Optional[list[str]] = None, config: Optional[AppConfig] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if config is None:
        config = load_config(args.config)
    services = build_services(config)
    try:
        return run_command(args, services)
    finally:
        services.dispatcher.shutdown(wait=True)


if __name__ == "__main__":
    raise SystemExit(main())
