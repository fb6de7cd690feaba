"""
Notifier tests.
Tests for toasts, local and remote delivery, dispatch routing and the daily summary.
"""

from datetime import date
from unittest.mock import Mock, patch

import pytest
import requests

from auric_ledger.notifiers.base import (
    AlertDispatcher,
    Notification,
    NotificationResult,
    Notifier,
)
from auric_ledger.notifiers.daily import DailySummaryNotifier
from auric_ledger.notifiers.local import LocalNotifier, PlatformNotifier, ToastCenter
from auric_ledger.notifiers.remote import RemoteAlertNotifier
from auric_ledger.store.models import AlertRule


class FakePlatform(PlatformNotifier):
    """Platform notifier with a switchable permission."""

    def __init__(self, granted=True, succeed=True):
        self.granted = granted
        self.succeed = succeed
        self.sent = []

    @property
    def permission_granted(self):
        return self.granted

    def send(self, notification):
        self.sent.append(notification)
        if self.succeed:
            return NotificationResult(success=True, channel="platform")
        return NotificationResult(success=False, channel="platform", error="denied")


@pytest.fixture
def notification():
    return Notification(
        title="Target Price Reached!",
        message="Gold has reached your target price",
        metal="XAU",
        alert_type="target_price",
        current_price=7550.0,
        target_value=7500.0,
        recipient="ravi@example.com",
    )


@pytest.fixture
def rule():
    return AlertRule(id="r1", metal="XAU", type="target_price", value=7500)


class TestToastCenter:
    """Test toast lifetime."""

    def test_toast_expires_after_duration(self, clock):
        """Should drop a toast after 4 seconds."""
        toasts = ToastCenter(clock=clock)
        toasts.push("Hi", "there")

        clock.advance(milliseconds=3999)
        assert len(toasts.active()) == 1

        clock.advance(milliseconds=1)
        assert toasts.active() == []

    def test_push_drops_expired_toasts(self, clock):
        """Should not keep expired toasts around when new ones arrive."""
        toasts = ToastCenter(clock=clock)
        for index in range(5):
            toasts.push("Alert", str(index))
            clock.advance(seconds=5)
        toasts.push("Alert", "latest")

        assert len(toasts._toasts) == 1


class TestLocalNotifier:
    """Test platform/toast selection."""

    def test_uses_platform_when_permitted(self, clock, notification):
        """Should prefer the platform notification."""
        platform = FakePlatform()
        toasts = ToastCenter(clock=clock)
        result = LocalNotifier(toasts, platform).send(notification)

        assert result.channel == "platform"
        assert platform.sent == [notification]
        assert toasts.active() == []

    def test_toast_without_permission(self, clock, notification):
        """Should show a toast when permission is missing."""
        platform = FakePlatform(granted=False)
        toasts = ToastCenter(clock=clock)
        result = LocalNotifier(toasts, platform).send(notification)

        assert result.channel == "toast"
        assert platform.sent == []
        assert toasts.active()[0].title == "Target Price Reached!"

    def test_toast_when_platform_fails(self, clock, notification):
        """Should fall back to a toast if the platform send fails."""
        toasts = ToastCenter(clock=clock)
        result = LocalNotifier(toasts, FakePlatform(succeed=False)).send(notification)

        assert result.success is True
        assert result.channel == "toast"

    def test_toast_without_platform(self, clock, notification):
        """Should show a toast when no platform API exists."""
        toasts = ToastCenter(clock=clock)
        LocalNotifier(toasts).send(notification)

        assert len(toasts.active()) == 1


class TestRemoteAlertNotifier:
    """Test backend email delivery."""

    def test_payload(self, notification):
        """Should post the trigger-price-alert body."""
        session = Mock()
        session.post.return_value = Mock(ok=True, status_code=200)
        notifier = RemoteAlertNotifier("https://api.example.com/", session=session)

        result = notifier.send(notification)

        assert result.success is True
        url = session.post.call_args[0][0]
        payload = session.post.call_args[1]["json"]
        assert url == "https://api.example.com/trigger-price-alert"
        assert payload == {
            "email": "ravi@example.com",
            "metalName": "XAU",
            "currentPrice": 7550.0,
            "alertType": "target_price",
            "targetValue": 7500.0,
            "browserNotificationEnabled": False,
        }

    def test_no_recipient(self, notification):
        """Should fail without calling the backend."""
        session = Mock()
        notification.recipient = None

        result = RemoteAlertNotifier("https://api.example.com", session=session).send(notification)

        assert result.success is False
        session.post.assert_not_called()

    def test_http_error(self, notification):
        """Should report non-2xx responses."""
        session = Mock()
        session.post.return_value = Mock(ok=False, status_code=500, text="boom")

        result = RemoteAlertNotifier("https://api.example.com", session=session).send(notification)

        assert result.success is False
        assert "500" in result.error

    def test_connection_error(self, notification):
        """Should report connection failures."""
        session = Mock()
        session.post.side_effect = requests.exceptions.ConnectionError("refused")

        result = RemoteAlertNotifier("https://api.example.com", session=session).send(notification)

        assert result.success is False
        assert "Connection error" in result.error

    @patch("auric_ledger.notifiers.remote.time.sleep")
    def test_rate_limit_retry(self, mock_sleep, notification):
        """Should retry once after a 429."""
        session = Mock()
        session.post.side_effect = [
            Mock(ok=False, status_code=429, headers={"Retry-After": "2"}),
            Mock(ok=True, status_code=200),
        ]

        result = RemoteAlertNotifier("https://api.example.com", session=session).send(notification)

        assert result.success is True
        assert session.post.call_count == 2
        mock_sleep.assert_called_once_with(2.0)


class TestAlertDispatcher:
    """Test local/remote routing."""

    def test_local_only_without_email(self, rule, preferences):
        """Should skip the remote channel when no address is on file."""
        local = Mock(spec=Notifier)
        local.send.return_value = NotificationResult(success=True, channel="toast")
        remote = Mock(spec=Notifier)
        dispatcher = AlertDispatcher(local, remote, preferences)

        dispatcher.dispatch(rule, "Target Price Reached!", "msg", 7550)
        dispatcher.shutdown()

        local.send.assert_called_once()
        remote.send.assert_not_called()

    def test_remote_with_email(self, rule, preferences):
        """Should also send remotely when the user opted in."""
        preferences.subscribe_email("ravi@example.com", remember_address=True)
        local = Mock(spec=Notifier)
        local.send.return_value = NotificationResult(success=True, channel="toast")
        remote = Mock(spec=Notifier)
        remote.send.return_value = NotificationResult(success=True, channel="email")
        dispatcher = AlertDispatcher(local, remote, preferences)

        dispatcher.dispatch(rule, "Target Price Reached!", "msg", 7550)
        dispatcher.shutdown(wait=True)

        sent = remote.send.call_args[0][0]
        assert sent.recipient == "ravi@example.com"
        assert sent.metal == "XAU"
        assert sent.target_value == 7500
        assert sent.current_price == 7550

    def test_masked_subscription_is_not_enough(self, rule, preferences):
        """Should not send remotely with only the masked marker."""
        preferences.subscribe_email("ravi@example.com")
        local = Mock(spec=Notifier)
        local.send.return_value = NotificationResult(success=True, channel="toast")
        remote = Mock(spec=Notifier)
        dispatcher = AlertDispatcher(local, remote, preferences)

        dispatcher.dispatch(rule, "t", "m")
        dispatcher.shutdown()

        remote.send.assert_not_called()

    def test_remote_failure_is_contained(self, notification):
        """Should keep the failure inside the future."""
        local = Mock(spec=Notifier)
        remote = Mock(spec=Notifier)
        remote.send.side_effect = RuntimeError("smtp down")
        dispatcher = AlertDispatcher(local, remote)

        future = dispatcher.notify_remote(notification)
        dispatcher.shutdown()

        assert isinstance(future.exception(), RuntimeError)

    def test_no_remote_channel(self, notification):
        """Should return None without a remote channel."""
        dispatcher = AlertDispatcher(Mock(spec=Notifier))

        assert dispatcher.notify_remote(notification) is None
        dispatcher.shutdown()


class TestDailySummaryNotifier:
    """Test once-per-day summary."""

    def test_sends_once_per_day(self, preferences, clock):
        """Should skip a second summary on the same day."""
        notifier = Mock(spec=Notifier)
        notifier.send.return_value = NotificationResult(success=True, channel="toast")
        daily = DailySummaryNotifier(notifier, preferences, clock)

        assert daily.maybe_notify(["Gold ▲ 1.00%"]) is not None
        assert daily.maybe_notify(["Gold ▲ 1.00%"]) is None
        assert notifier.send.call_count == 1
        assert preferences.get_last_daily_notification() == date(2024, 1, 8)

    def test_sends_next_day(self, preferences, clock):
        """Should send again on a new day."""
        notifier = Mock(spec=Notifier)
        notifier.send.return_value = NotificationResult(success=True, channel="toast")
        daily = DailySummaryNotifier(notifier, preferences, clock)

        daily.maybe_notify(["line"])
        clock.advance(days=1)
        daily.maybe_notify(["line"])

        assert notifier.send.call_count == 2

    def test_failure_does_not_mark_day(self, preferences, clock):
        """Should retry later if sending failed."""
        notifier = Mock(spec=Notifier)
        notifier.send.return_value = NotificationResult(success=False, channel="toast", error="x")
        daily = DailySummaryNotifier(notifier, preferences, clock)

        daily.maybe_notify(["line"])

        assert preferences.get_last_daily_notification() is None

    def test_empty_lines(self, preferences, clock):
        """Should skip when there is nothing to report."""
        notifier = Mock(spec=Notifier)

        assert DailySummaryNotifier(notifier, preferences, clock).maybe_notify([]) is None
        notifier.send.assert_not_called()
