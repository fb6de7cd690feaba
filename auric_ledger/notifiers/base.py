"""
Base notifier classes and the alert dispatcher.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from auric_ledger.store.models import AlertRule
from auric_ledger.store.repository import PreferencesRepository

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    """A message to deliver on some channel."""

    title: str
    message: str
    metal: Optional[str] = None
    alert_type: Optional[str] = None
    current_price: Optional[float] = None
    target_value: Optional[float] = None
    recipient: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class NotificationResult:
    """Result of a notification attempt."""

    success: bool
    channel: str
    error: Optional[str] = None


class Notifier(ABC):
    """Abstract base class for notifiers."""

    @abstractmethod
    def send(self, notification: Notification) -> NotificationResult:
        """
        Send a single notification.

        Args:
            notification: Notification to send

        Returns:
            NotificationResult indicating success or failure
        """
        pass


class AlertDispatcher:
    """
    Routes triggered alerts to the on-device channel and, when the user has an
    email on file, to the off-device channel.

    Remote delivery runs on a background worker and is never awaited or
    retried here; failures are only logged.
    """

    def __init__(
        self,
        local: Notifier,
        remote: Optional[Notifier] = None,
        preferences: Optional[PreferencesRepository] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        """
        Initialize dispatcher.

        Args:
            local: Platform notification with toast fallback
            remote: Off-device channel (email)
            preferences: Source of the opted-in email address
            executor: Worker for remote sends; one is created if not given
        """
        self.local = local
        self.remote = remote
        self.preferences = preferences
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="remote-notify"
        )

    def notify_local(self, notification: Notification) -> NotificationResult:
        result = self.local.send(notification)
        if not result.success:
            logger.warning(f"Local notification failed: {result.error}")
        return result

    def notify_remote(self, notification: Notification) -> Optional[Future]:
        """Queue an off-device send; returns the pending future, or None if no channel."""
        if self.remote is None:
            return None

        future = self._executor.submit(self.remote.send, notification)
        future.add_done_callback(self._log_remote_result)
        return future

    def dispatch(
        self, rule: AlertRule, title: str, message: str, current_price: Any = None
    ) -> None:
        """Deliver a triggered alert."""
        notification = Notification(
            title=title,
            message=message,
            metal=rule.metal,
            alert_type=rule.type,
            current_price=current_price,
            target_value=rule.value,
        )
        self.notify_local(notification)

        email = self.preferences.email_address if self.preferences else None
        if email:
            notification.recipient = email
            self.notify_remote(notification)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    @staticmethod
    def _log_remote_result(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Remote notification failed: {error}")
            return

        result = future.result()
        if not result.success:
            logger.error(f"Remote notification failed: {result.error}")
