"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest

from auric_ledger.notifiers.base import AlertDispatcher, NotificationResult
from auric_ledger.store.connection import MemoryStore
from auric_ledger.store.models import Metal, Quote, UnitSelection
from auric_ledger.store.repository import AlertRuleRepository, PreferencesRepository


class FakeClock:
    """Callable clock that tests move forward by hand."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-08 09:30."""
    return FakeClock(datetime(2024, 1, 8, 9, 30))


@pytest.fixture
def store():
    """Empty in-memory key-value store."""
    return MemoryStore()


@pytest.fixture
def rule_repo(store):
    return AlertRuleRepository(store)


@pytest.fixture
def preferences(store):
    return PreferencesRepository(store)


@pytest.fixture
def dispatcher():
    """Dispatcher double that records dispatches."""
    mock = Mock(spec=AlertDispatcher)
    mock.notify_local.return_value = NotificationResult(success=True, channel="toast")
    return mock


@pytest.fixture
def gold():
    return Metal("XAU", "Gold")


@pytest.fixture
def silver():
    return Metal("XAG")


@pytest.fixture
def gold_selection():
    return UnitSelection(unit="1g", carat="22")


@pytest.fixture
def sample_quote_payload():
    """Sample latest-price payload for 22K gold."""
    return {
        "date": "2024-01-07",
        "metal_name": "XAU",
        "carat": "22",
        "price_1g": 5815.5,
        "price_8g": 46524.0,
        "price_per_kg": None,
        "carat_prices": {"18": 4761.0, "22": 5815.5, "24": 6348.0},
    }


@pytest.fixture
def weekly_history():
    """Three days of 22K gold quotes, oldest first."""
    return [
        Quote(date="2024-01-05", price_1g=5800.0, price_8g=46400.0),
        Quote(date="2024-01-06", price_1g=5750.0, price_8g=46000.0),
        Quote(date="2024-01-07", price_1g=5815.5, price_8g=46524.0),
    ]


@pytest.fixture
def comparison_payload():
    """Sample compare-yesterday payload."""
    return {
        "metal_name": "XAU",
        "today_date": "2024-01-07",
        "yesterday_date": "2024-01-06",
        "today_prices": {"price_1g": 5815.5, "price_8g": 46524.0, "price_per_kg": None},
        "yesterday_prices": {"price_1g": 5750.0, "price_8g": 46000.0, "price_per_kg": None},
    }
