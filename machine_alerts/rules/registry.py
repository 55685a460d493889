# -*- coding: utf-8 -*-
"""
Rule registry: CRUD over alert rules keyed by rule id.
Iteration order is insertion order; re-adding an id replaces the rule in place.
"""
from typing import Dict, List, Optional

from machine_alerts.rules.rule_defs import AlertRule


class RuleRegistry:
    def __init__(self):
        self._rules: Dict[str, AlertRule] = {}

    def add(self, rule: AlertRule) -> AlertRule:
        """Add or replace a rule (last write wins)."""
        self._rules[rule.id] = rule
        return rule

    def remove(self, rule_id: str) -> bool:
        if rule_id in self._rules:
            del self._rules[rule_id]
            return True
        return False

    def set_enabled(self, rule_id: str, enabled: bool) -> bool:
        """Toggle a rule. Unknown ids are ignored (returns False)."""
        rule = self._rules.get(rule_id)
        if rule is None:
            return False
        self._rules[rule_id] = rule.with_enabled(enabled)
        return True

    def get(self, rule_id: str) -> Optional[AlertRule]:
        return self._rules.get(rule_id)

    def list(self) -> List[AlertRule]:
        return list(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rules
