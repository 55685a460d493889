# -*- coding: utf-8 -*-
"""
Alert condition types.

A condition is exactly one of four kinds:
    threshold  -> field compared against a single value
    range      -> field inside/outside [min, max]
    trend      -> direction of change over recent history of a field
    composite  -> AND/OR over child conditions (arbitrary nesting)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Tuple, Union


class ComparisonOperator(str, Enum):
    """Threshold comparison operators"""
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    EQ = "eq"
    NEQ = "neq"


class LogicalOperator(str, Enum):
    """Composite combinators"""
    AND = "and"
    OR = "or"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class RangeMode(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"


@dataclass(frozen=True)
class ThresholdCondition:
    type: ClassVar[str] = "threshold"
    field: str
    operator: ComparisonOperator
    value: float


@dataclass(frozen=True)
class RangeCondition:
    type: ClassVar[str] = "range"
    field: str
    min: float
    max: float
    mode: RangeMode


@dataclass(frozen=True)
class TrendCondition:
    type: ClassVar[str] = "trend"
    field: str
    direction: TrendDirection
    sample_count: int
    change_threshold_percent: float


@dataclass(frozen=True)
class CompositeCondition:
    type: ClassVar[str] = "composite"
    operator: LogicalOperator
    conditions: Tuple["AlertCondition", ...]

    def __post_init__(self):
        # Accept any sequence, store an immutable tuple
        object.__setattr__(self, "conditions", tuple(self.conditions))


AlertCondition = Union[ThresholdCondition, RangeCondition, TrendCondition, CompositeCondition]


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if key not in data:
        raise ValueError(f"{kind} condition is missing required key '{key}'")
    return data[key]


def _enum(enum_cls, raw: Any, kind: str):
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Invalid {kind} value {raw!r} (expected one of: {allowed})") from None


def condition_from_dict(data: Dict[str, Any]) -> AlertCondition:
    """
    Build a condition from its dictionary form (as found in YAML rule files).

    Args:
        data: {"type": "threshold", "field": "temperature", "operator": "gt", "value": 80}

    Returns:
        The matching condition dataclass.

    Raises:
        ValueError: unknown type, unknown enum value or missing key.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Condition must be a mapping, got {type(data).__name__}")

    kind = data.get("type")
    if kind == ThresholdCondition.type:
        return ThresholdCondition(
            field=str(_require(data, "field", kind)),
            operator=_enum(ComparisonOperator, _require(data, "operator", kind), "operator"),
            value=float(_require(data, "value", kind)),
        )
    if kind == RangeCondition.type:
        return RangeCondition(
            field=str(_require(data, "field", kind)),
            min=float(_require(data, "min", kind)),
            max=float(_require(data, "max", kind)),
            mode=_enum(RangeMode, _require(data, "mode", kind), "mode"),
        )
    if kind == TrendCondition.type:
        return TrendCondition(
            field=str(_require(data, "field", kind)),
            direction=_enum(TrendDirection, _require(data, "direction", kind), "direction"),
            sample_count=int(_require(data, "sample_count", kind)),
            change_threshold_percent=float(_require(data, "change_threshold_percent", kind)),
        )
    if kind == CompositeCondition.type:
        children = _require(data, "conditions", kind)
        if not isinstance(children, list):
            raise ValueError("composite condition 'conditions' must be a list")
        return CompositeCondition(
            operator=_enum(LogicalOperator, _require(data, "operator", kind), "operator"),
            conditions=tuple(condition_from_dict(child) for child in children),
        )
    raise ValueError(f"Unknown condition type: {kind!r}")


def condition_to_dict(condition: AlertCondition) -> Dict[str, Any]:
    """Inverse of condition_from_dict."""
    if isinstance(condition, ThresholdCondition):
        return {
            "type": condition.type,
            "field": condition.field,
            "operator": condition.operator.value,
            "value": condition.value,
        }
    if isinstance(condition, RangeCondition):
        return {
            "type": condition.type,
            "field": condition.field,
            "min": condition.min,
            "max": condition.max,
            "mode": condition.mode.value,
        }
    if isinstance(condition, TrendCondition):
        return {
            "type": condition.type,
            "field": condition.field,
            "direction": condition.direction.value,
            "sample_count": condition.sample_count,
            "change_threshold_percent": condition.change_threshold_percent,
        }
    if isinstance(condition, CompositeCondition):
        return {
            "type": condition.type,
            "operator": condition.operator.value,
            "conditions": [condition_to_dict(child) for child in condition.conditions],
        }
    raise TypeError(f"Unsupported condition: {condition!r}")
