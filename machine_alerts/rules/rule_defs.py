# -*- coding: utf-8 -*-
"""
Rule definitions for the alert engine.

AlertRule / TriggeredAlert value types, conversion from the dictionary form
used by YAML rule files, authoring checks, and the packaged default rule set.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import yaml
from loguru import logger

from machine_alerts.rules.conditions import (
    AlertCondition,
    CompositeCondition,
    RangeCondition,
    TrendCondition,
    condition_from_dict,
    condition_to_dict,
)

DEFAULT_RULES_FILE = Path(__file__).resolve().parent.parent / "configs" / "smart_factory_rules.yaml"


class AlertSeverity(str, Enum):
    """Alert severity levels"""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AlertRule:
    """
    Declarative alert rule.

    Example:
        AlertRule(
            id="high-temp",
            name="High Temperature",
            condition=ThresholdCondition("temperature", ComparisonOperator.GT, 80),
            severity=AlertSeverity.WARNING,
            cooldown_ms=60000,
        )
    """
    id: str
    name: str
    condition: AlertCondition
    severity: AlertSeverity
    cooldown_ms: int
    enabled: bool = True
    description: Optional[str] = None
    equipment_ids: Tuple[str, ...] = ()
    message_template: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "equipment_ids", tuple(self.equipment_ids or ()))

    def applies_to(self, equipment_id: Optional[str]) -> bool:
        """
        Equipment scope check.

        Only filters when the rule has a scope AND the caller named an equipment.
        """
        if not self.equipment_ids or not equipment_id:
            return True
        return equipment_id in self.equipment_ids

    def with_enabled(self, enabled: bool) -> "AlertRule":
        return replace(self, enabled=enabled)

    def to_dict(self) -> Dict[str, Any]:
        return rule_to_dict(self)


@dataclass(frozen=True)
class TriggeredAlert:
    """
    An alert produced by one evaluation pass.

    This is what gets handed to notification channels; never mutated.
    """
    rule_id: str
    rule_name: str
    severity: AlertSeverity
    message: str
    timestamp: str
    triggering_values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # Snapshot copy, read-only
        object.__setattr__(self, "triggering_values", MappingProxyType(dict(self.triggering_values)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "triggering_values": dict(self.triggering_values),
        }


def rule_from_dict(data: Dict[str, Any]) -> AlertRule:
    """
    Build an AlertRule from its dictionary form.

    Args:
        data: {
            "id": "vibration-warning",
            "name": "Vibration warning",
            "condition": {"type": "threshold", ...},
            "severity": "warning",
            "cooldown_ms": 60000,
            "enabled": true,                 # optional, default true
            "description": "...",            # optional
            "equipment_ids": ["eq-001"],     # optional
            "message_template": "{vibration}mm/s"  # optional
        }

    Raises:
        ValueError: If a required key is missing or a value is invalid.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Rule must be a mapping, got {type(data).__name__}")

    rule_id = data.get("id")
    for key in ("id", "name", "condition", "severity", "cooldown_ms"):
        if key not in data:
            raise ValueError(f"Rule {rule_id!r} is missing required key '{key}'")

    try:
        condition = condition_from_dict(data["condition"])
        severity = AlertSeverity(data["severity"])
        cooldown_ms = int(data["cooldown_ms"])
    except (ValueError, TypeError) as e:
        raise ValueError(f"Rule {rule_id!r}: {e}") from e

    enabled = data.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ValueError(f"Rule {rule_id!r}: enabled must be true or false (got {enabled!r})")

    equipment_ids = data.get("equipment_ids") or []
    if isinstance(equipment_ids, str) or not isinstance(equipment_ids, (list, tuple, set)):
        raise ValueError(f"Rule {rule_id!r}: equipment_ids must be a list")

    return AlertRule(
        id=str(rule_id),
        name=str(data["name"]),
        condition=condition,
        severity=severity,
        cooldown_ms=cooldown_ms,
        enabled=enabled,
        description=data.get("description"),
        equipment_ids=tuple(str(eq) for eq in equipment_ids),
        message_template=data.get("message_template"),
    )


def rule_to_dict(rule: AlertRule) -> Dict[str, Any]:
    result = {
        "id": rule.id,
        "name": rule.name,
        "condition": condition_to_dict(rule.condition),
        "severity": rule.severity.value,
        "cooldown_ms": rule.cooldown_ms,
        "enabled": rule.enabled,
    }
    if rule.description is not None:
        result["description"] = rule.description
    if rule.equipment_ids:
        result["equipment_ids"] = list(rule.equipment_ids)
    if rule.message_template is not None:
        result["message_template"] = rule.message_template
    return result


def _condition_problems(condition: AlertCondition, path: str) -> List[str]:
    problems = []
    if isinstance(condition, RangeCondition):
        if condition.min > condition.max:
            problems.append(f"{path}: range min {condition.min} is greater than max {condition.max}")
    elif isinstance(condition, TrendCondition):
        if condition.sample_count < 1:
            problems.append(f"{path}: trend sample_count must be at least 1")
        if condition.change_threshold_percent < 0:
            problems.append(f"{path}: trend change_threshold_percent must not be negative")
    elif isinstance(condition, CompositeCondition):
        if not condition.conditions:
            problems.append(f"{path}: composite has no conditions and will never fire")
        for i, child in enumerate(condition.conditions):
            problems.extend(_condition_problems(child, f"{path}.conditions[{i}]"))
    return problems


def validate_rule(rule: AlertRule) -> List[str]:
    """
    Report authoring mistakes in a rule.

    The engine accepts these rules as-is; this is for dry-run tooling
    and rule-file loading.

    Returns:
        Human-readable problems (empty list if none).
    """
    problems = []
    if not rule.id.strip():
        problems.append("id is blank")
    if not rule.name.strip():
        problems.append("name is blank")
    if rule.cooldown_ms < 0:
        problems.append(f"cooldown_ms must not be negative (got {rule.cooldown_ms})")
    problems.extend(_condition_problems(rule.condition, "condition"))
    return problems


def parse_rules(entries: Iterable[Dict[str, Any]]) -> List[AlertRule]:
    """Parse rule dicts, logging authoring problems as warnings."""
    rules = []
    for entry in entries:
        rule = rule_from_dict(entry)
        for problem in validate_rule(rule):
            logger.warning(f"Rule '{rule.id}': {problem}")
        rules.append(rule)
    return rules


def load_rules_file(path: Union[str, Path]) -> List[AlertRule]:
    """
    Load rules from a YAML file with a top-level 'rules' list.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the document or a rule is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        document = yaml.safe_load(f) or {}

    entries = document.get("rules") if isinstance(document, dict) else None
    if not isinstance(entries, list):
        raise ValueError(f"Rules file {path} must contain a top-level 'rules' list")

    rules = parse_rules(entries)
    logger.debug(f"Loaded {len(rules)} rules from {path}")
    return rules


def load_default_rules() -> List[AlertRule]:
    """Packaged smart-factory rule set (vibration, temperature, OEE, trend, composite)."""
    return load_rules_file(DEFAULT_RULES_FILE)
