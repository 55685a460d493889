# -*- coding: utf-8 -*-
"""
Formatting utilities for alert messages.
Handles number rendering, HTML escaping and timestamp formatting.
"""
import html
import math
from datetime import datetime, timezone
from typing import Any

import pytz


def format_number(value: Any) -> str:
    """
    Render a reading value for display.

    Integral floats drop the trailing ".0" (85.0 -> "85"), other floats use
    their shortest representation (85.5 -> "85.5").

    Args:
        value: Reading value (normally int or float)

    Returns:
        Formatted string
    """
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def escape_html(text: str) -> str:
    """Escape < > & \" ' so the text is safe inside markup."""
    return html.escape(text, quote=True)


def format_timestamp_iso(timestamp_ms: int, tz_name: str = "UTC") -> str:
    """
    Format Unix timestamp (milliseconds) as ISO-8601 with millisecond precision.

    Args:
        timestamp_ms: Unix timestamp in milliseconds
        tz_name: IANA timezone name (e.g., "UTC", "Asia/Seoul")

    Returns:
        "2025-01-01T12:00:00.000Z" for UTC, offset form otherwise
        (e.g., "2025-01-01T21:00:00.000+09:00")
    """
    seconds, millis = divmod(int(timestamp_ms), 1000)
    dt = datetime.fromtimestamp(seconds, tz=timezone.utc).replace(microsecond=millis * 1000)

    if tz_name.upper() == "UTC":
        return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"

    local = dt.astimezone(pytz.timezone(tz_name))
    return local.isoformat(timespec="milliseconds")
