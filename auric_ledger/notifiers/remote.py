"""
Off-device alert delivery through the backend's email endpoint.
"""

import time
from typing import Any, Optional

import requests

from .base import Notification, NotificationResult, Notifier


class RemoteAlertNotifier(Notifier):
    """Asks the backend to email a triggered alert."""

    ENDPOINT = "/trigger-price-alert"

    def __init__(
        self,
        api_base_url: str,
        timeout: float = 10,
        browser_notifications: bool = False,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize remote notifier.

        Args:
            api_base_url: Backend base URL
            timeout: Request timeout in seconds
            browser_notifications: Whether platform notifications are also on
            session: HTTP session to reuse
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout = timeout
        self.browser_notifications = browser_notifications
        self.session = session or requests.Session()

    def send(self, notification: Notification) -> NotificationResult:
        """Send alert to the backend email channel."""
        if not notification.recipient:
            return NotificationResult(
                success=False, channel="email", error="No email address on file"
            )

        try:
            payload = self._create_payload(notification)
            response = self._post(payload)

            if response.ok:
                return NotificationResult(success=True, channel="email")
            else:
                return NotificationResult(
                    success=False,
                    channel="email",
                    error=f"HTTP {response.status_code}: {response.text}",
                )

        except requests.exceptions.ConnectionError as e:
            return NotificationResult(
                success=False,
                channel="email",
                error=f"Connection error: {str(e)}",
            )
        except requests.exceptions.RequestException as e:
            return NotificationResult(
                success=False,
                channel="email",
                error=str(e),
            )

    def _post(self, payload: dict[str, Any]) -> requests.Response:
        """Post with rate limit handling."""
        url = f"{self.api_base_url}{self.ENDPOINT}"
        response = self.session.post(url, json=payload, timeout=self.timeout)

        # Handle rate limiting
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After", "1")
            time.sleep(float(retry_after))
            response = self.session.post(url, json=payload, timeout=self.timeout)

        return response

    def _create_payload(self, notification: Notification) -> dict[str, Any]:
        """Create the trigger-price-alert request body."""
        return {
            "email": notification.recipient,
            "metalName": notification.metal,
            "currentPrice": notification.current_price,
            "alertType": notification.alert_type,
            "targetValue": notification.target_value,
            "browserNotificationEnabled": self.browser_notifications,
        }
