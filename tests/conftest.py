"""Shared test fixtures and configuration."""
from pathlib import Path
from typing import Dict, List

import pytest
import yaml

from machine_alerts.rules.conditions import ComparisonOperator, ThresholdCondition
from machine_alerts.rules.engine import AlertRuleEngine
from machine_alerts.rules.rule_defs import AlertRule, AlertSeverity


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1735732800000):  # 2025-01-01 12:00:00 UTC
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> int:
        self.now_ms += ms
        return self.now_ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(clock: FakeClock) -> AlertRuleEngine:
    """Empty engine driven by the fake clock."""
    return AlertRuleEngine(clock=clock)


@pytest.fixture
def high_temp_rule() -> AlertRule:
    """temperature > 80, no cooldown."""
    return AlertRule(
        id="high-temp",
        name="High Temperature",
        condition=ThresholdCondition("temperature", ComparisonOperator.GT, 80),
        severity=AlertSeverity.WARNING,
        cooldown_ms=0,
    )


@pytest.fixture
def rising_vibration() -> List[float]:
    """Five samples rising 30% (5.0 -> 6.5)."""
    return [5.0, 5.3, 5.7, 6.1, 6.5]


@pytest.fixture
def threshold_rule_dict() -> Dict:
    """Rule in rule-file (dict) form."""
    return {
        'id': 'vibration-warning',
        'name': 'Vibration warning',
        'condition': {
            'type': 'threshold',
            'field': 'vibration',
            'operator': 'gt',
            'value': 5,
        },
        'severity': 'warning',
        'cooldown_ms': 60000,
        'message_template': 'Vibration: {vibration}mm/s',
    }


@pytest.fixture
def rules_yaml(tmp_path: Path, threshold_rule_dict: Dict) -> Path:
    """Temporary rules file with one threshold rule."""
    rules_file = tmp_path / 'rules.yaml'
    with open(rules_file, 'w', encoding='utf-8') as f:
        yaml.dump({'rules': [threshold_rule_dict]}, f, allow_unicode=True)
    return rules_file


@pytest.fixture
def test_config_yaml(tmp_path: Path) -> Path:
    """Create a temporary engine config YAML file."""
    config = {
        'engine': {
            'history_size': 50,
        },
        'alerts': {
            'timezone': 'UTC',
            'load_default_rules': True,
        },
        'logging': {
            'level': 'DEBUG',
        },
    }

    config_file = tmp_path / 'engine.yaml'
    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(config, f)

    return config_file
