"""
Display formatting for prices and dates (en-IN conventions).
"""

from datetime import date, datetime
from typing import Optional, Union

from auric_ledger.store.models import to_finite

RUPEE = "₹"


def group_indian(digits: str) -> str:
    """Group an integer digit string the Indian way: 12,34,567."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_amount(value: Optional[float]) -> str:
    """1234567.891 -> 12,34,567.89; missing values format as 0.00."""
    number = to_finite(value) or 0.0
    sign = "-" if number < 0 else ""
    whole, fraction = f"{abs(number):.2f}".split(".")
    return f"{sign}{group_indian(whole)}.{fraction}"


def format_money(value: Optional[float]) -> str:
    """Rupee-prefixed amount, as shown on screen and in CSV exports."""
    amount = format_amount(value)
    if amount.startswith("-"):
        return f"-{RUPEE}{amount[1:]}"
    return f"{RUPEE}{amount}"


def format_number_plain(value: Optional[float]) -> str:
    """ASCII-only amount for PDF output, where the rupee glyph is unavailable."""
    return f"Rs.{format_amount(value)}"


def parse_date(value: Union[str, date, datetime]) -> date:
    """
    Parse an ISO date or timestamp.

    Raises:
        ValueError: If value is not ISO formatted
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.fromisoformat(value[:10]).date()


def format_date(value: Union[str, date, datetime]) -> str:
    """'2024-01-05' -> '05 Jan 2024'; unparseable values pass through unchanged."""
    try:
        return parse_date(value).strftime("%d %b %Y")
    except (TypeError, ValueError):
        return str(value)
