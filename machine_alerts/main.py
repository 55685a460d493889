"""
Dry-run tool for alert rules.

Loads rules, replays a readings document through a fresh engine and prints
the alerts that would fire as JSON lines. With --check it only validates rules.

Readings document (YAML or JSON):
    equipment_id: eq-001          # optional
    history:                      # optional, pushed oldest first
      vibration: [5.0, 5.3, 5.7, 6.1, 6.5]
    readings:
      vibration: 6.5
      temperature: 72
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from loguru import logger

from machine_alerts.config import LOG_LEVEL, ConfigLoader, get_logging_config
from machine_alerts.rules.engine import AlertRuleEngine, create_engine_from_config
from machine_alerts.rules.evaluator import is_numeric
from machine_alerts.rules.rule_defs import load_default_rules, load_rules_file, validate_rule
from machine_alerts.utils.logging import setup_logging


def load_readings_document(path: str) -> dict:
    """Read and sanity-check a readings document."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Readings file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        document = yaml.safe_load(f) or {}

    if not isinstance(document, dict) or not isinstance(document.get('readings'), dict):
        raise ValueError(f"Readings file {file_path} must contain a 'readings' mapping")
    history = document.get('history') or {}
    if not isinstance(history, dict):
        raise ValueError(f"Readings file {file_path}: 'history' must be a mapping of field -> list")
    for field, values in history.items():
        if not isinstance(values, list) or not all(is_numeric(v) for v in values):
            raise ValueError(f"Readings file {file_path}: history for {field!r} must be a list of numbers")
    return document


def build_engine(args: argparse.Namespace) -> AlertRuleEngine:
    if args.config:
        default_rules = False if args.no_defaults else None
        engine = create_engine_from_config(ConfigLoader(args.config), default_rules=default_rules)
    else:
        engine = AlertRuleEngine()
        if not args.no_defaults:
            for rule in load_default_rules():
                engine.add_rule(rule)

    for rules_path in args.rules:
        for rule in load_rules_file(rules_path):
            engine.add_rule(rule)
    return engine


def check_rules(engine: AlertRuleEngine) -> int:
    """Print authoring problems; returns process exit code."""
    problem_count = 0
    for rule in engine.get_rules():
        for problem in validate_rule(rule):
            print(f"{rule.id}: {problem}")
            problem_count += 1

    logger.info(f"Checked {len(engine.get_rules())} rules: {problem_count} problem(s)")
    return 1 if problem_count else 0


def replay(engine: AlertRuleEngine, document: dict, equipment_id: Optional[str]) -> int:
    for field, values in (document.get('history') or {}).items():
        for value in values or []:
            engine.update_history(field, value)

    alerts = engine.evaluate(document['readings'], equipment_id or document.get('equipment_id'))
    for alert in alerts:
        print(json.dumps(alert.to_dict(), ensure_ascii=False))

    logger.info(f"Dry run complete: {len(alerts)} alert(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Alert rule engine dry-run tool")
    parser.add_argument("--config", help="Engine YAML config (defaults come from it when given)")
    parser.add_argument("--rules", action="append", default=[], help="Extra YAML rules file (repeatable)")
    parser.add_argument("--no-defaults", action="store_true", help="Do not load the packaged default rules")
    parser.add_argument("--readings", help="YAML/JSON readings document to replay")
    parser.add_argument("--equipment-id", help="Equipment id (overrides the document's equipment_id)")
    parser.add_argument("--check", action="store_true", help="Validate rules only")
    args = parser.parse_args(argv)

    level, log_file = LOG_LEVEL, None
    if args.config:
        logging_config = get_logging_config(ConfigLoader(args.config))
        level, log_file = logging_config['level'], logging_config['file']
    # JSON results go to stdout, logs to stderr
    setup_logging(level, log_file, stream=sys.stderr)

    try:
        engine = build_engine(args)

        if args.check:
            return check_rules(engine)

        if not args.readings:
            parser.error("--readings is required unless --check is given")

        document = load_readings_document(args.readings)
        return replay(engine, document, args.equipment_id)

    except (FileNotFoundError, ValueError) as e:
        logger.error(f"{e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
