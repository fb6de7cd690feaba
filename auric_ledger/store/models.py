"""
Data models for Auric Ledger.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from auric_ledger.data.symbols import is_gold, metal_label

ALERT_TYPE_TARGET_PRICE = "target_price"
ALERT_TYPE_PERCENTAGE_CHANGE = "percentage_change"
ALERT_TYPES = (ALERT_TYPE_TARGET_PRICE, ALERT_TYPE_PERCENTAGE_CHANGE)


def to_finite(value: Any) -> Optional[float]:
    """Return a finite int or float as float; anything else, numeric strings included, is None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


@dataclass(frozen=True)
class Metal:
    """Tracked metal, e.g. XAU."""

    symbol: str
    display_name: Optional[str] = None

    @property
    def is_gold(self) -> bool:
        return is_gold(self.symbol) or is_gold(self.display_name)

    @property
    def label(self) -> str:
        return metal_label(self.symbol, self.display_name)


@dataclass(frozen=True)
class Quote:
    """One metal's price snapshot for a date."""

    date: str
    price_1g: Optional[float]
    price_8g: Optional[float] = None
    price_per_kg: Optional[float] = None
    carat_prices: Optional[dict[str, Optional[float]]] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quote":
        """Build a quote from the API payload shape."""
        carat_prices = data.get("carat_prices")
        if isinstance(carat_prices, dict):
            carat_prices = {str(k): to_finite(v) for k, v in carat_prices.items()}
        else:
            carat_prices = None

        return cls(
            date=str(data.get("date") or ""),
            price_1g=to_finite(data.get("price_1g")),
            price_8g=to_finite(data.get("price_8g")),
            price_per_kg=to_finite(data.get("price_per_kg")),
            carat_prices=carat_prices,
        )


@dataclass(frozen=True)
class UnitSelection:
    """Selected unit and, for gold, carat."""

    unit: str = "1g"
    carat: Optional[str] = None


@dataclass(frozen=True)
class ComparisonResult:
    """Today-vs-yesterday comparison for one unit."""

    difference: float
    percentage_change: Optional[float]  # None when yesterday's price is 0
    direction: str  # "up", "down", "neutral"


@dataclass(frozen=True)
class ChartRange:
    """Padded y-axis bounds for a price chart."""

    min: float
    max: float


@dataclass(frozen=True)
class PriceStats:
    """Low/high/average over a history window."""

    min: float
    max: float
    avg: float


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a persisted timestamp into naive local time.

    Accepts ISO-8601 strings (with or without an offset, including a trailing
    "Z") and numeric epoch milliseconds.

    Raises:
        ValueError: If the value is not a recognizable timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class AlertRule:
    """User's price alert rule."""

    id: str
    metal: str
    type: str  # "target_price", "percentage_change"
    value: float
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    last_triggered_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted key names."""
        return {
            "id": self.id,
            "metal": self.metal,
            "type": self.type,
            "value": self.value,
            "enabled": self.enabled,
            "createdAt": self.created_at.isoformat(),
            "lastTriggeredAt": (
                self.last_triggered_at.isoformat() if self.last_triggered_at else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertRule":
        """
        Build a rule from its persisted form.

        Raises:
            ValueError: If a required field is missing or malformed
        """
        try:
            value = float(data["value"])
            created = parse_timestamp(data.get("createdAt"))
            triggered = parse_timestamp(data.get("lastTriggeredAt"))
            return cls(
                id=str(data["id"]),
                metal=str(data["metal"]),
                type=str(data["type"]),
                value=value,
                enabled=bool(data.get("enabled", True)),
                created_at=created or datetime.now(),
                last_triggered_at=triggered,
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed alert rule: {e}") from e


@dataclass(frozen=True)
class AlertEvaluation:
    """Outcome of evaluating one rule against one price observation."""

    triggered: bool
    message: str = ""
    rule_id: Optional[str] = None
