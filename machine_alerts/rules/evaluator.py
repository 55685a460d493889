# -*- coding: utf-8 -*-
"""
Condition evaluation.

Pure functions: no side effects on readings or history. A missing or
non-numeric field, or too little history for a trend, evaluates to False.
"""
from typing import Any, Mapping, Optional, Sequence

from machine_alerts.rules.conditions import (
    AlertCondition,
    ComparisonOperator,
    CompositeCondition,
    LogicalOperator,
    RangeCondition,
    RangeMode,
    ThresholdCondition,
    TrendCondition,
    TrendDirection,
)
from machine_alerts.storage.history import DataPoint, HistoryStore


def is_numeric(value: Any) -> bool:
    """True for int and float values, bools excluded."""
    return not isinstance(value, bool) and isinstance(value, (int, float))


def get_numeric(readings: Mapping[str, float], field: str) -> Optional[float]:
    """Reading value for field, or None when absent or not a number."""
    value = readings.get(field)
    if not is_numeric(value):
        return None
    return value


def compare(actual: float, operator: ComparisonOperator, expected: float) -> bool:
    if operator == ComparisonOperator.GT:
        return actual > expected
    elif operator == ComparisonOperator.GTE:
        return actual >= expected
    elif operator == ComparisonOperator.LT:
        return actual < expected
    elif operator == ComparisonOperator.LTE:
        return actual <= expected
    elif operator == ComparisonOperator.EQ:
        return actual == expected
    elif operator == ComparisonOperator.NEQ:
        return actual != expected
    raise TypeError(f"Unsupported comparison operator: {operator!r}")


def calculate_trend(samples: Sequence[DataPoint], change_threshold_percent: float) -> TrendDirection:
    """
    Classify the change between the first and last sample of a window.

    changePercent = (last - first) / |first| * 100

    A zero first value is classified as stable.
    """
    if not samples:
        return TrendDirection.STABLE

    first = samples[0].value
    last = samples[-1].value
    if first == 0:
        return TrendDirection.STABLE

    change_percent = (last - first) / abs(first) * 100
    if change_percent > change_threshold_percent:
        return TrendDirection.INCREASING
    if change_percent < -change_threshold_percent:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def evaluate_threshold(condition: ThresholdCondition, readings: Mapping[str, float]) -> bool:
    value = get_numeric(readings, condition.field)
    if value is None:
        return False
    return compare(value, condition.operator, condition.value)


def evaluate_range(condition: RangeCondition, readings: Mapping[str, float]) -> bool:
    value = get_numeric(readings, condition.field)
    if value is None:
        return False
    in_range = condition.min <= value <= condition.max
    return in_range if condition.mode == RangeMode.INSIDE else not in_range


def evaluate_trend(condition: TrendCondition, history: Optional[HistoryStore]) -> bool:
    if condition.sample_count < 1:
        return False

    buffer = history.get(condition.field) if history is not None else None
    # Warm-up: not enough samples yet
    if buffer is None or len(buffer) < condition.sample_count:
        return False

    samples = buffer.last(condition.sample_count)
    return calculate_trend(samples, condition.change_threshold_percent) == condition.direction


def evaluate_composite(
    condition: CompositeCondition,
    readings: Mapping[str, float],
    history: Optional[HistoryStore],
) -> bool:
    # Empty composites never fire, for AND as well as OR
    if not condition.conditions:
        return False

    results = [evaluate_condition(child, readings, history) for child in condition.conditions]
    if condition.operator == LogicalOperator.AND:
        return all(results)
    return any(results)


def evaluate_condition(
    condition: AlertCondition,
    readings: Mapping[str, float],
    history: Optional[HistoryStore] = None,
) -> bool:
    """
    Evaluate any condition kind against the current readings.

    Args:
        condition: Condition to test
        readings: Flat mapping of field -> current value
        history: Per-field history, consulted by trend conditions only

    Returns:
        True if the condition holds.
    """
    if isinstance(condition, ThresholdCondition):
        return evaluate_threshold(condition, readings)
    if isinstance(condition, RangeCondition):
        return evaluate_range(condition, readings)
    if isinstance(condition, TrendCondition):
        return evaluate_trend(condition, history)
    if isinstance(condition, CompositeCondition):
        return evaluate_composite(condition, readings, history)
    raise TypeError(f"Unsupported condition: {condition!r}")
