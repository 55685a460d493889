# -*- coding: utf-8 -*-
"""
Sensor reading adapter.
Flattens sensor readings into the field -> value mapping the engine evaluates.
"""
from typing import Dict, Iterable, Tuple, TypedDict

from loguru import logger


class SensorReading(TypedDict, total=False):
    """Single sensor reading as delivered by the collectors."""
    type: str                          # label, e.g. "진동" or "vibration"
    value: float
    unit: str                          # e.g. "mm/s"
    normal_range: Tuple[float, float]  # (min, max)
    status: str                        # normal | warning | critical
    timestamp: str                     # ISO-8601


# Localized sensor labels -> canonical signal names
SENSOR_TYPE_ALIASES: Dict[str, str] = {
    "진동": "vibration",
    "온도": "temperature",
    "전류": "current",
    "소음": "noise",
}


def sensor_readings_to_record(readings: Iterable[SensorReading]) -> Dict[str, float]:
    """
    Convert sensor readings into a flat record for rule evaluation.

    Each reading is stored under its own label and, when the label is a known
    localized one, under the canonical name as well.

    Args:
        readings: [{"type": "진동", "value": 5.5, ...}, ...]

    Returns:
        {"진동": 5.5, "vibration": 5.5, ...}
    """
    record: Dict[str, float] = {}
    for reading in readings:
        label = reading.get("type")
        value = reading.get("value")
        if not label or isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.debug(f"Skipping sensor reading without numeric value: {reading!r}")
            continue

        record[label] = value
        canonical = SENSOR_TYPE_ALIASES.get(label)
        if canonical:
            record[canonical] = value
    return record
