"""
Pricing tests.
Tests for units, day-over-day comparison, statistics, chart range and formatting.
"""

import math

import pytest

from auric_ledger.pricing.charts import DEFAULT_RANGE, chart_range
from auric_ledger.pricing.comparison import (
    DIRECTION_DOWN,
    DIRECTION_NEUTRAL,
    DIRECTION_UP,
    compare_prices,
    comparison_from_payload,
)
from auric_ledger.pricing.formatting import (
    format_date,
    format_money,
    format_number_plain,
    group_indian,
)
from auric_ledger.pricing.stats import compute_stats, history_stats
from auric_ledger.pricing.units import (
    active_price,
    carat_price,
    carat_suffix,
    normalize_selection,
    units_for_metal,
)
from auric_ledger.store.models import Quote, UnitSelection


class TestUnits:
    """Test unit and carat selection."""

    def test_gold_units(self):
        """Should offer 1g and 8g for gold."""
        assert [u.value for u in units_for_metal("XAU")] == ["1g", "8g"]

    def test_other_metal_units(self):
        """Should offer 1g and 1kg for other metals."""
        assert [u.value for u in units_for_metal("XAG")] == ["1g", "1kg"]

    def test_no_metal(self):
        """Should offer nothing when no metal is selected."""
        assert units_for_metal("") == []

    def test_invalid_unit_falls_back(self):
        """Should replace a unit the metal does not support."""
        assert normalize_selection("XAU", "1kg").unit == "1g"
        assert normalize_selection("XAG", "8g").unit == "1g"

    def test_gold_carat_defaults_to_22(self):
        """Should default gold to 22 carat."""
        assert normalize_selection("XAU", "1g").carat == "22"
        assert normalize_selection("XAU", "1g", "99").carat == "22"
        assert normalize_selection("XAU", "1g", "24").carat == "24"

    def test_carat_ignored_for_other_metals(self):
        """Should drop carat for non-gold metals."""
        assert normalize_selection("XAG", "1kg", "22") == UnitSelection(unit="1kg", carat=None)

    def test_active_price(self):
        """Should pick the field matching the unit."""
        quote = Quote(date="2024-01-07", price_1g=80.0, price_per_kg=80000.0)

        assert active_price(quote, "XAG", UnitSelection("1kg")) == 80000.0
        assert active_price(quote, "XAG", UnitSelection("1g")) == 80.0
        assert active_price(None, "XAG", UnitSelection("1g")) is None

    def test_carat_price_missing(self):
        """Should report 0 for a carat the quote lacks."""
        quote = Quote(date="2024-01-07", price_1g=1.0, carat_prices={"22": 5815.5})

        assert carat_price(quote, "22") == 5815.5
        assert carat_price(quote, "18") == 0.0

    def test_carat_suffix(self):
        """Should suffix gold labels with the carat."""
        assert carat_suffix("XAU", UnitSelection("1g", "22")) == " (22K)"
        assert carat_suffix("XAG", UnitSelection("1g")) == ""


class TestComparison:
    """Test day-over-day comparison."""

    def test_increase(self):
        """Should report an upward move."""
        result = compare_prices(102, 100)

        assert result.difference == 2
        assert result.percentage_change == pytest.approx(2.0)
        assert result.direction == DIRECTION_UP

    def test_decrease(self):
        """Should report a downward move."""
        result = compare_prices(95, 100)

        assert result.direction == DIRECTION_DOWN
        assert result.percentage_change == pytest.approx(-5.0)

    def test_equal(self):
        """Should report neutral when prices are equal."""
        result = compare_prices(100, 100)

        assert result.direction == DIRECTION_NEUTRAL
        assert result.percentage_change == 0

    @pytest.mark.parametrize("today,yesterday", [
        (None, 100),
        (100, None),
        (math.nan, 100),
        (100, math.inf),
        ("n/a", 100),
    ])
    def test_missing_prices(self, today, yesterday):
        """Should return None when either side is absent."""
        assert compare_prices(today, yesterday) is None

    def test_zero_yesterday(self):
        """Should keep direction but leave the percentage unknown."""
        result = compare_prices(50, 0)

        assert result.difference == 50
        assert result.percentage_change is None
        assert result.direction == DIRECTION_UP

    def test_from_payload(self, comparison_payload):
        """Should compare the field matching the unit."""
        result = comparison_from_payload(comparison_payload, "XAU", UnitSelection("8g", "22"))

        assert result.difference == pytest.approx(524.0)
        assert result.direction == DIRECTION_UP

    def test_from_payload_missing_unit(self, comparison_payload):
        """Should return None when the unit has no prices."""
        assert comparison_from_payload(comparison_payload, "XAG", UnitSelection("1kg")) is None
        assert comparison_from_payload(None, "XAU", UnitSelection("1g")) is None

    @pytest.mark.parametrize("payload", [
        ["not", "a", "dict"],
        "oops",
        {"today_prices": [1], "yesterday_prices": {"price_1g": 1.0}},
        {"today_prices": {"price_1g": 2.0}, "yesterday_prices": None},
    ])
    def test_from_payload_malformed(self, payload):
        """Should return None for payloads of the wrong shape."""
        assert comparison_from_payload(payload, "XAU", UnitSelection("1g", "22")) is None

    def test_from_payload_string_prices(self):
        """Should treat numeric strings as absent prices."""
        payload = {"today_prices": {"price_1g": "10"}, "yesterday_prices": {"price_1g": 5}}

        assert comparison_from_payload(payload, "XAG", UnitSelection("1g")) is None

    def test_string_prices(self):
        """Should not compare numeric strings."""
        assert compare_prices("10", 5) is None


class TestStats:
    """Test summary statistics."""

    def test_empty(self):
        """Should report zeros when there are no values."""
        stats = compute_stats([])

        assert (stats.min, stats.max, stats.avg) == (0, 0, 0)

    def test_ignores_non_finite(self):
        """Should skip missing and non-finite values."""
        stats = compute_stats([None, 10, math.nan, 20, "x"])

        assert (stats.min, stats.max, stats.avg) == (10, 20, 15)

    def test_order_invariant(self):
        """Should not depend on input order."""
        assert compute_stats([3, 1, 2]) == compute_stats([1, 2, 3])

    def test_history_stats(self, weekly_history):
        """Should use the active price of each quote."""
        stats = history_stats(weekly_history, "XAU", UnitSelection("1g", "22"))

        assert stats.min == 5750.0
        assert stats.max == 5815.5
        assert stats.min <= stats.avg <= stats.max


class TestChartRange:
    """Test chart axis scaling."""

    def test_empty_series(self):
        """Should fall back to 0..100."""
        assert chart_range([]) == DEFAULT_RANGE
        assert chart_range([None, math.nan]) == DEFAULT_RANGE

    def test_padding(self):
        """Should pad by 15% of the spread."""
        result = chart_range([100, 200])

        assert result.min == pytest.approx(85)
        assert result.max == pytest.approx(215)

    def test_flat_series(self):
        """Should pad a flat series by at least 1."""
        result = chart_range([50, 50])

        assert result.min == 49
        assert result.max == 51

    def test_never_negative(self):
        """Should clamp the lower bound at zero."""
        assert chart_range([0.5, 0.5]).min == 0

    def test_string_values_ignored(self):
        """Should ignore numeric strings when scaling."""
        assert chart_range(["150", 100]) == chart_range([100])

    def test_contains_all_values(self):
        """Should enclose every value."""
        values = [5750.0, 5815.5, 5800.0]
        result = chart_range(values)

        assert result.min <= min(values)
        assert result.max >= max(values)


class TestFormatting:
    """Test display formatting."""

    def test_indian_grouping(self):
        """Should group thousands, then pairs."""
        assert group_indian("123") == "123"
        assert group_indian("1234") == "1,234"
        assert group_indian("1234567") == "12,34,567"

    def test_format_money(self):
        """Should prefix the rupee sign and keep two decimals."""
        assert format_money(46524) == "₹46,524.00"
        assert format_money(None) == "₹0.00"
        assert format_money(-1500.5) == "-₹1,500.50"

    def test_plain_format(self):
        """Should use an ASCII prefix."""
        assert format_number_plain(1234567.891) == "Rs.12,34,567.89"

    def test_format_date(self):
        """Should render day, short month and year."""
        assert format_date("2024-01-05") == "05 Jan 2024"
        assert format_date("2024-01-05T10:00:00Z") == "05 Jan 2024"
        assert format_date("soon") == "soon"
