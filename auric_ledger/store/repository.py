"""
Repositories over the key-value store.
"""

import json
import logging
import re
from datetime import date
from typing import Optional

from .connection import KeyValueStore
from .models import AlertRule

logger = logging.getLogger(__name__)

KEY_ALERTS = "auric-alerts"
KEY_METAL = "auric-metal"
KEY_CARAT = "auric-carat"
KEY_UNIT = "auric-unit"
KEY_DARK_MODE = "auric-dark-mode"
KEY_EMAIL_SUBSCRIPTION = "auric-email-subscription"
KEY_EMAIL_ADDRESS = "auric-email-address"
KEY_LAST_DAILY_NOTIFICATION = "auric-last-daily-notification"

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def mask_email(email: str) -> str:
    """Keep the first three characters of the local part, e.g. abc***@example.com."""
    local, _, domain = email.partition("@")
    return f"{local[:3]}***@{domain}"


class AlertRuleRepository:
    """Loads and saves the full alert rule list as one JSON array."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> list[AlertRule]:
        """Load all rules, skipping entries that cannot be parsed."""
        raw = self.store.get(KEY_ALERTS)
        if not raw:
            return []

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt alert rule list: {e}")
            return []

        if not isinstance(items, list):
            logger.warning("Ignoring alert rule list: expected a JSON array")
            return []

        rules = []
        for item in items:
            try:
                rules.append(AlertRule.from_dict(item))
            except ValueError as e:
                logger.warning(f"Skipping alert rule: {e}")
        return rules

    def save(self, rules: list[AlertRule]) -> None:
        """Persist the full rule list."""
        self.store.set(KEY_ALERTS, json.dumps([rule.to_dict() for rule in rules]))


class PreferencesRepository:
    """Selected metal/carat/unit, theme, email subscription and daily dedup marker."""

    def __init__(self, store: KeyValueStore, default_dark_mode: bool = False):
        self.store = store
        self.default_dark_mode = default_dark_mode

    def get_selection(self) -> tuple[Optional[str], str, str]:
        """Return (metal, carat, unit), defaulting carat to 22 and unit to 1g."""
        metal = self.store.get(KEY_METAL)
        carat = self.store.get(KEY_CARAT) or "22"
        unit = self.store.get(KEY_UNIT) or "1g"
        return metal, carat, unit

    def save_selection(
        self,
        metal: Optional[str] = None,
        carat: Optional[str] = None,
        unit: Optional[str] = None,
    ) -> None:
        """Save whichever parts of the selection are given."""
        if metal:
            self.store.set(KEY_METAL, metal)
        if carat:
            self.store.set(KEY_CARAT, carat)
        if unit:
            self.store.set(KEY_UNIT, unit)

    @property
    def dark_mode(self) -> bool:
        """Saved theme, or the configured default when none was chosen."""
        saved = self.store.get(KEY_DARK_MODE)
        if saved is None:
            return self.default_dark_mode
        return saved == "true"

    @dark_mode.setter
    def dark_mode(self, enabled: bool) -> None:
        self.store.set(KEY_DARK_MODE, "true" if enabled else "false")

    def subscribe_email(self, email: str, remember_address: bool = False) -> str:
        """
        Record an email subscription.

        Args:
            email: Address to subscribe
            remember_address: Keep the full address for off-device alerts

        Returns:
            The masked marker that was stored

        Raises:
            ValueError: If email is not a valid address
        """
        email = email.strip()
        if not _EMAIL_PATTERN.match(email):
            raise ValueError(f"Invalid email address: {email!r}")

        masked = mask_email(email)
        self.store.set(KEY_EMAIL_SUBSCRIPTION, masked)
        if remember_address:
            self.store.set(KEY_EMAIL_ADDRESS, email)
        else:
            self.store.remove(KEY_EMAIL_ADDRESS)
        return masked

    def unsubscribe_email(self) -> None:
        self.store.remove(KEY_EMAIL_SUBSCRIPTION)
        self.store.remove(KEY_EMAIL_ADDRESS)

    @property
    def email_subscription(self) -> Optional[str]:
        """Masked subscription marker, if subscribed."""
        return self.store.get(KEY_EMAIL_SUBSCRIPTION)

    @property
    def email_address(self) -> Optional[str]:
        """Full address, only present when the user opted in to off-device alerts."""
        return self.store.get(KEY_EMAIL_ADDRESS)

    def get_last_daily_notification(self) -> Optional[date]:
        raw = self.store.get(KEY_LAST_DAILY_NOTIFICATION)
        if not raw:
            return None
        try:
            return date.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed daily notification date: {raw!r}")
            return None

    def set_last_daily_notification(self, day: date) -> None:
        self.store.set(KEY_LAST_DAILY_NOTIFICATION, day.isoformat())
