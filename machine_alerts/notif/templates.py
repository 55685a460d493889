# -*- coding: utf-8 -*-
"""
Message templates for triggered alerts.
Renders a rule's own template, or a default message per condition kind.
"""
import re
from typing import Mapping

from machine_alerts.notif.formatter import escape_html, format_number
from machine_alerts.rules.conditions import (
    CompositeCondition,
    RangeCondition,
    ThresholdCondition,
    TrendCondition,
)
from machine_alerts.rules.rule_defs import AlertRule

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


def render_template(template: str, readings: Mapping[str, float]) -> str:
    """
    Replace every {field} placeholder with the escaped reading value.

    Placeholders whose field is absent from readings are left as-is.

    Args:
        template: e.g. "Temperature: {temperature}°C"
        readings: {"temperature": 85.5}

    Returns:
        "Temperature: 85.5°C"
    """
    def substitute(match: "re.Match") -> str:
        key = match.group(1)
        if key not in readings:
            return match.group(0)
        return escape_html(format_number(readings[key]))

    return PLACEHOLDER_PATTERN.sub(substitute, template)


def template_threshold(rule: AlertRule, condition: ThresholdCondition, readings: Mapping[str, float]) -> str:
    value = format_number(readings.get(condition.field))
    target = format_number(condition.value)
    return f"{rule.name}: {condition.field} = {value} (threshold: {condition.operator.value} {target})"


def template_range(rule: AlertRule, condition: RangeCondition, readings: Mapping[str, float]) -> str:
    value = format_number(readings.get(condition.field))
    low = format_number(condition.min)
    high = format_number(condition.max)
    return f"{rule.name}: {condition.field} = {value} ({condition.mode.value} range {low}-{high})"


def template_trend(rule: AlertRule, condition: TrendCondition) -> str:
    return f"{rule.name}: {condition.field} trend is {condition.direction.value}"


def template_composite(rule: AlertRule) -> str:
    return f"{rule.name}: Multiple conditions triggered"


def build_message(rule: AlertRule, readings: Mapping[str, float]) -> str:
    """Alert message for a rule that fired on these readings."""
    if rule.message_template:
        return render_template(rule.message_template, readings)

    condition = rule.condition
    if isinstance(condition, ThresholdCondition):
        return template_threshold(rule, condition, readings)
    if isinstance(condition, RangeCondition):
        return template_range(rule, condition, readings)
    if isinstance(condition, TrendCondition):
        return template_trend(rule, condition)
    if isinstance(condition, CompositeCondition):
        return template_composite(rule)
    raise TypeError(f"Unsupported condition: {condition!r}")
