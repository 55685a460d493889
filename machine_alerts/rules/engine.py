"""
Alert Rules Engine - evaluates sensor readings against declarative rules.
This is the core of the alerting system.

Usage:
    engine = AlertRuleEngine()
    for rule in load_default_rules():
        engine.add_rule(rule)

    engine.update_history("vibration", 6.1)
    alerts = engine.evaluate({"vibration": 6.1, "temperature": 72}, equipment_id="eq-001")
"""
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pytz
from loguru import logger

from machine_alerts.config import ConfigLoader, get_alert_config, get_config, get_engine_config
from machine_alerts.notif.formatter import format_timestamp_iso
from machine_alerts.notif.templates import build_message
from machine_alerts.notif.throttle import CooldownTracker
from machine_alerts.rules.evaluator import evaluate_condition, is_numeric
from machine_alerts.rules.registry import RuleRegistry
from machine_alerts.rules.rule_defs import (
    AlertRule,
    TriggeredAlert,
    load_default_rules,
    load_rules_file,
    rule_from_dict,
)
from machine_alerts.storage.history import DataPoint, HistoryStore


def current_time_ms() -> int:
    return int(time.time() * 1000)


class AlertRuleEngine:
    """
    Owns the rule registry, per-field history and cooldown state.

    Every public method runs under one lock, so a cooldown check and the
    matching record happen atomically across concurrent evaluate() calls.
    """

    def __init__(
        self,
        history_size: int = 100,
        clock: Optional[Callable[[], int]] = None,
        timezone: str = "UTC",
    ):
        """
        Args:
            history_size: Maximum history samples kept per field
            clock: Returns current time in epoch milliseconds
            timezone: Timezone for alert timestamps

        Raises:
            pytz.UnknownTimeZoneError: If timezone is not a known zone name
        """
        # Unknown zones fail at construction
        pytz.timezone(timezone)

        self.clock = clock or current_time_ms
        self.timezone = timezone

        self._lock = threading.Lock()
        self._registry = RuleRegistry()
        self._history = HistoryStore(history_size)
        self._cooldowns = CooldownTracker()

    # ------------------------------------------------------------------
    # Rule administration
    # ------------------------------------------------------------------

    def add_rule(self, rule: Union[AlertRule, Dict[str, Any]]) -> AlertRule:
        """Add or replace a rule. Dicts use the rule-file format."""
        if isinstance(rule, dict):
            rule = rule_from_dict(rule)
        with self._lock:
            replaced = rule.id in self._registry
            self._registry.add(rule)
        logger.info(f"Rule {'replaced' if replaced else 'added'}: {rule.id} ({rule.severity.value})")
        return rule

    def remove_rule(self, rule_id: str) -> None:
        """Remove a rule and its cooldown state."""
        with self._lock:
            removed = self._registry.remove(rule_id)
            self._cooldowns.forget(rule_id)
        if removed:
            logger.info(f"Rule removed: {rule_id}")

    def set_rule_enabled(self, rule_id: str, enabled: bool) -> None:
        with self._lock:
            changed = self._registry.set_enabled(rule_id, enabled)
        if changed:
            logger.info(f"Rule {'enabled' if enabled else 'disabled'}: {rule_id}")

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        with self._lock:
            return self._registry.get(rule_id)

    def get_rules(self) -> List[AlertRule]:
        with self._lock:
            return self._registry.list()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, readings: Mapping[str, float], equipment_id: Optional[str] = None) -> List[TriggeredAlert]:
        """
        Evaluate all enabled, applicable rules against the readings.

        Args:
            readings: Flat mapping of field -> current value
            equipment_id: Equipment the readings came from (optional)

        Returns:
            Newly triggered alerts, in rule registration order.
        """
        triggered: List[TriggeredAlert] = []

        with self._lock:
            now_ms = self.clock()

            for rule in self._registry.list():
                if not rule.enabled:
                    logger.debug(f"Rule {rule.id} skipped: disabled")
                    continue

                if not rule.applies_to(equipment_id):
                    logger.debug(f"Rule {rule.id} skipped: out of scope for {equipment_id}")
                    continue

                if not self._cooldowns.should_fire(rule.id, now_ms, rule.cooldown_ms):
                    continue

                if not evaluate_condition(rule.condition, readings, self._history):
                    logger.debug(f"Rule {rule.id} not matched")
                    continue

                alert = TriggeredAlert(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    severity=rule.severity,
                    message=build_message(rule, readings),
                    timestamp=format_timestamp_iso(now_ms, self.timezone),
                    triggering_values=readings,
                )
                triggered.append(alert)
                self._cooldowns.record_fired(rule.id, now_ms)

                logger.info(f"Alert triggered: {rule.id} [{rule.severity.value}] {alert.message}")

        return triggered

    # ------------------------------------------------------------------
    # History / state
    # ------------------------------------------------------------------

    def update_history(self, field: str, value: float) -> None:
        """Record a sample for trend rules. Non-numeric values are skipped."""
        if not is_numeric(value):
            logger.debug(f"History sample for {field} skipped: not a number ({value!r})")
            return
        with self._lock:
            self._history.update(field, value, self.clock())

    def get_history(self, field: str) -> List[DataPoint]:
        """Snapshot of a field's samples, oldest first."""
        with self._lock:
            buffer = self._history.get(field)
            return buffer.to_list() if buffer is not None else []

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
        logger.debug("History cleared")

    def clear_cooldowns(self) -> None:
        with self._lock:
            self._cooldowns.clear()
        logger.debug("Cooldowns cleared")


def create_engine_from_config(
    config: Optional[ConfigLoader] = None,
    clock: Optional[Callable[[], int]] = None,
    default_rules: Optional[bool] = None,
) -> AlertRuleEngine:
    """
    Build an engine from YAML config and load the configured rules.

    Default rules are loaded first; rules from alerts.rules_file are added
    afterwards and replace defaults with the same id.

    Args:
        config: Config to read (global config when omitted)
        clock: Engine clock
        default_rules: Overrides alerts.load_default_rules when not None
    """
    config = config or get_config()
    engine_config = get_engine_config(config)
    alert_config = get_alert_config(config)

    engine = AlertRuleEngine(
        history_size=engine_config['history_size'],
        clock=clock,
        timezone=alert_config['timezone'],
    )

    if default_rules is None:
        default_rules = alert_config['load_default_rules']

    if default_rules:
        for rule in load_default_rules():
            engine.add_rule(rule)

    if alert_config['rules_file']:
        for rule in load_rules_file(alert_config['rules_file']):
            engine.add_rule(rule)

    logger.info(f"Alert engine ready: {len(engine.get_rules())} rules, history_size={engine_config['history_size']}")
    return engine
