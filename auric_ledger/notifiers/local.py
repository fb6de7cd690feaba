"""
On-device notifications: platform notification if permitted, else an in-app toast.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .base import Notification, NotificationResult, Notifier

logger = logging.getLogger(__name__)

DEFAULT_TOAST_DURATION_MS = 4000


class PlatformNotifier(Notifier):
    """System notification API; only usable once the user granted permission."""

    @property
    @abstractmethod
    def permission_granted(self) -> bool:
        pass


@dataclass(frozen=True)
class Toast:
    """Ephemeral in-app message."""

    title: str
    message: str
    created_at: datetime
    expires_at: datetime


class ToastCenter:
    """Holds toasts until they expire."""

    def __init__(
        self,
        duration_ms: int = DEFAULT_TOAST_DURATION_MS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.duration = timedelta(milliseconds=duration_ms)
        self.clock = clock
        self._toasts: list[Toast] = []

    def push(self, title: str, message: str) -> Toast:
        now = self.clock()
        self._prune(now)
        toast = Toast(title=title, message=message, created_at=now, expires_at=now + self.duration)
        self._toasts.append(toast)
        return toast

    def active(self) -> list[Toast]:
        """Toasts still on screen; expired ones are dropped."""
        self._prune(self.clock())
        return list(self._toasts)

    def _prune(self, now: datetime) -> None:
        self._toasts = [toast for toast in self._toasts if toast.expires_at > now]


class LocalNotifier(Notifier):
    """Sends through the platform when permitted, falling back to a toast."""

    def __init__(
        self,
        toasts: ToastCenter,
        platform: Optional[PlatformNotifier] = None,
    ):
        self.toasts = toasts
        self.platform = platform

    def send(self, notification: Notification) -> NotificationResult:
        if self.platform is not None and self.platform.permission_granted:
            result = self.platform.send(notification)
            if result.success:
                return result
            logger.warning(f"Platform notification failed, showing toast: {result.error}")

        self.toasts.push(notification.title, notification.message)
        return NotificationResult(success=True, channel="toast")
