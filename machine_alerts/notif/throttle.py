# -*- coding: utf-8 -*-
"""
Per-rule alert cooldown.
Tracks when each rule last fired and suppresses re-firing inside its window.
"""
from typing import Dict, Optional
from loguru import logger


class CooldownTracker:
    """
    Last-fired timestamp (epoch ms) per rule id.

    Entries are created on first firing, overwritten on every later firing
    and only removed by forget() / clear(). Not locked: the owning engine
    serialises should_fire + record_fired.
    """

    def __init__(self):
        self._last_fired: Dict[str, int] = {}

    def should_fire(self, rule_id: str, now_ms: int, cooldown_ms: int) -> bool:
        """
        Check if the rule is outside its cooldown window.

        Args:
            rule_id: Rule identifier
            now_ms: Current time (epoch ms)
            cooldown_ms: Minimum interval between firings

        Returns:
            True if never fired, or at least cooldown_ms elapsed since last firing.
        """
        last = self._last_fired.get(rule_id)
        if last is None:
            return True

        if now_ms - last >= cooldown_ms:
            return True

        logger.debug(f"Cooldown active: {rule_id} ({now_ms - last}ms of {cooldown_ms}ms elapsed)")
        return False

    def record_fired(self, rule_id: str, now_ms: int) -> None:
        """Record that the rule fired at now_ms."""
        self._last_fired[rule_id] = now_ms

    def last_fired(self, rule_id: str) -> Optional[int]:
        return self._last_fired.get(rule_id)

    def forget(self, rule_id: str) -> None:
        """Drop cooldown state for one rule."""
        self._last_fired.pop(rule_id, None)

    def clear(self) -> None:
        self._last_fired.clear()

    def get_stats(self) -> Dict:
        """Get current cooldown statistics."""
        return {
            "tracked_rules": len(self._last_fired),
            "last_fired": dict(self._last_fired),
        }
