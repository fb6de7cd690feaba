"""
Alert rule engine.

Each rule is Idle until its condition holds and its cooldown has elapsed; it
then dispatches once, stamps ``last_triggered_at`` and returns to Idle. The
stamp is persisted whether or not delivery later succeeds, so a rule fires at
most once per cooldown window.
"""

import logging
import math
import uuid
from datetime import datetime
from typing import Callable, Optional

from auric_ledger.notifiers.base import AlertDispatcher
from auric_ledger.store.models import (
    ALERT_TYPE_PERCENTAGE_CHANGE,
    ALERT_TYPE_TARGET_PRICE,
    ALERT_TYPES,
    AlertEvaluation,
    AlertRule,
    to_finite,
)
from auric_ledger.store.repository import AlertRuleRepository
from .types import PercentageChangeRule, Rule, TargetPriceRule

# Re-export for convenience
__all__ = ["RuleEngine", "AlertEvaluation"]

logger = logging.getLogger(__name__)

NOT_TRIGGERED = AlertEvaluation(triggered=False)


class RuleEngine:
    """Holds alert rules and evaluates them against fresh prices."""

    def __init__(
        self,
        repository: AlertRuleRepository,
        dispatcher: AlertDispatcher,
        clock: Callable[[], datetime] = datetime.now,
        cooldown_minutes: float = 60,
        target_tolerance_pct: float = 1.0,
    ):
        """
        Initialize rule engine.

        Args:
            repository: Persistent rule list
            dispatcher: Local/remote notification dispatcher
            clock: Returns the current time
            cooldown_minutes: Minimum time between triggers of the same rule
            target_tolerance_pct: Band around a target price that counts as reached
        """
        self.repository = repository
        self.dispatcher = dispatcher
        self.clock = clock
        self.cooldown_minutes = cooldown_minutes
        self.target_tolerance_pct = target_tolerance_pct
        self.rules: list[AlertRule] = repository.load()

    def list_rules(self, metal: Optional[str] = None) -> list[AlertRule]:
        """List rules, optionally only those for one metal."""
        if metal is None:
            return list(self.rules)
        return [rule for rule in self.rules if rule.metal == metal]

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def add_rule(self, metal: str, rule_type: str, value: float) -> AlertRule:
        """
        Create and persist a new rule.

        Raises:
            ValueError: If the type is unknown or the value is not a positive number
        """
        if rule_type not in ALERT_TYPES:
            raise ValueError(f"Unknown alert type: {rule_type}")
        number = to_finite(value)
        if number is None or number <= 0:
            raise ValueError(f"Alert value must be a positive number, got {value!r}")
        if not metal:
            raise ValueError("Alert metal is required")

        rule = AlertRule(
            id=uuid.uuid4().hex,
            metal=metal,
            type=rule_type,
            value=number,
            created_at=self.clock(),
        )
        self.rules.append(rule)
        self.repository.save(self.rules)
        logger.info(f"Added {rule_type} alert {rule.id} for {metal} at {number:g}")
        return rule

    def toggle_rule(self, rule_id: str) -> Optional[AlertRule]:
        """Flip a rule's enabled flag; returns None if the rule doesn't exist."""
        rule = self.get_rule(rule_id)
        if rule is None:
            return None
        rule.enabled = not rule.enabled
        self.repository.save(self.rules)
        return rule

    def delete_rule(self, rule_id: str) -> bool:
        """Delete a rule; returns False if it doesn't exist."""
        remaining = [rule for rule in self.rules if rule.id != rule_id]
        if len(remaining) == len(self.rules):
            return False
        self.rules = remaining
        self.repository.save(self.rules)
        return True

    def create_rule(self, alert_rule: AlertRule) -> Rule:
        """
        Create a condition instance from an AlertRule.

        Raises:
            ValueError: If rule type is unknown
        """
        if alert_rule.type == ALERT_TYPE_TARGET_PRICE:
            return TargetPriceRule(
                target=alert_rule.value, tolerance_pct=self.target_tolerance_pct
            )
        elif alert_rule.type == ALERT_TYPE_PERCENTAGE_CHANGE:
            return PercentageChangeRule(threshold=alert_rule.value)
        else:
            raise ValueError(f"Unknown alert type: {alert_rule.type}")

    def minutes_since_trigger(self, rule: AlertRule, now: datetime) -> float:
        """Minutes since the rule last fired; infinite if it never has."""
        if rule.last_triggered_at is None:
            return math.inf
        return (now - rule.last_triggered_at).total_seconds() / 60

    def evaluate(
        self,
        rule: AlertRule,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float] = None,
    ) -> AlertEvaluation:
        """
        Evaluate one rule and, if it fires, dispatch and persist the cooldown.

        Args:
            rule: Rule to evaluate
            metal_name: Metal the observation is for
            current_price: Fresh price
            yesterday_price: Previous day's price, if known

        Returns:
            AlertEvaluation with the message when triggered
        """
        evaluation = self._check(rule, metal_name, current_price, yesterday_price)
        if evaluation.triggered:
            self._fire(rule, evaluation, current_price)
            self.repository.save(self.rules)
        return evaluation

    def process_observation(
        self,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float] = None,
    ) -> list[AlertEvaluation]:
        """
        Evaluate every rule for one fresh price observation.

        Rules are independent: each is checked against its own cooldown. The
        rule list is persisted once at the end if anything fired.

        Returns:
            Evaluations of the rules that triggered
        """
        triggered = []
        for rule in list(self.rules):
            evaluation = self._check(rule, metal_name, current_price, yesterday_price)
            if evaluation.triggered:
                self._fire(rule, evaluation, current_price)
                triggered.append(evaluation)

        if triggered:
            self.repository.save(self.rules)
        return triggered

    def _check(
        self,
        rule: AlertRule,
        metal_name: str,
        current_price: float,
        yesterday_price: Optional[float],
    ) -> AlertEvaluation:
        if not rule.enabled or rule.metal != metal_name:
            return NOT_TRIGGERED

        price = to_finite(current_price)
        if price is None:
            return NOT_TRIGGERED

        now = self.clock()
        if self.minutes_since_trigger(rule, now) < self.cooldown_minutes:
            logger.debug(f"Alert {rule.id} is cooling down")
            return NOT_TRIGGERED

        try:
            condition = self.create_rule(rule)
        except ValueError as e:
            logger.warning(f"Skipping alert {rule.id}: {e}")
            return NOT_TRIGGERED

        message = condition.check(metal_name, price, yesterday_price)
        if message is None:
            return NOT_TRIGGERED
        return AlertEvaluation(triggered=True, message=message, rule_id=rule.id)

    def _fire(self, rule: AlertRule, evaluation: AlertEvaluation, price: float) -> None:
        logger.info(f"Alert {rule.id} triggered: {evaluation.message}")
        try:
            self.dispatcher.dispatch(rule, self._title(rule), evaluation.message, price)
        except Exception as e:
            logger.error(f"Dispatch failed for alert {rule.id}: {e}")
        rule.last_triggered_at = self.clock()

    def _title(self, rule: AlertRule) -> str:
        if rule.type == ALERT_TYPE_TARGET_PRICE:
            return "Target Price Reached!"
        return "Price Change Alert!"
