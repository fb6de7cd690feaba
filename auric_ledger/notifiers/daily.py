"""
Once-per-day price summary notification.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from auric_ledger.store.repository import PreferencesRepository
from .base import Notification, NotificationResult, Notifier

logger = logging.getLogger(__name__)


class DailySummaryNotifier:
    """Sends the daily summary at most once per local calendar day."""

    def __init__(
        self,
        notifier: Notifier,
        preferences: PreferencesRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.notifier = notifier
        self.preferences = preferences
        self.clock = clock

    def maybe_notify(self, lines: list[str]) -> Optional[NotificationResult]:
        """
        Send today's summary unless one was already sent today.

        Returns:
            The send result, or None when skipped
        """
        if not lines:
            return None

        today = self.clock().date()
        if self.preferences.get_last_daily_notification() == today:
            logger.debug("Daily summary already sent today")
            return None

        result = self.notifier.send(
            Notification(title="Daily Metal Prices", message="\n".join(lines))
        )
        if result.success:
            self.preferences.set_last_daily_notification(today)
        return result
