import os
import pytz
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv(dotenv_path=os.path.join(os.path.dirname(os.path.dirname(__file__)), ".env"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CONFIG_FILE = os.getenv("CONFIG_FILE", "./configs/engine.yaml")

DEFAULT_HISTORY_SIZE = 100
MAX_HISTORY_SIZE = 10_000


class ConfigLoader:
    """Loads and validates YAML configuration with environment variable substitution."""

    required_sections = ['engine', 'alerts']

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self._config: Optional[Dict[str, Any]] = None
        self._load()

    def _load(self):
        """Load YAML config file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        if not isinstance(self._config, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

        for section in self.required_sections:
            if section not in self._config:
                raise ValueError(f"Missing required config section: {section}")

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get config value by dot-notation path.
        Example: config.get('engine.history_size') -> 100
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        # Handle environment variable substitution in strings
        if isinstance(value, str) and value.startswith('${') and value.endswith('}'):
            env_var = value[2:-1]
            return os.getenv(env_var, default)

        return value

    @property
    def raw(self) -> Dict[str, Any]:
        """Get raw config dict."""
        return self._config


# Global config instance (lazy-loaded)
_config_instance: Optional[ConfigLoader] = None


def get_config() -> ConfigLoader:
    """Get global config instance (singleton pattern)."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigLoader(os.getenv("CONFIG_FILE", CONFIG_FILE))
    return _config_instance


def reload_config(config_path: Optional[str] = None) -> ConfigLoader:
    """Reload config from file (or switch to another file)."""
    global _config_instance
    _config_instance = ConfigLoader(config_path or os.getenv("CONFIG_FILE", CONFIG_FILE))
    return _config_instance


def get_engine_config(config: Optional[ConfigLoader] = None) -> Dict[str, Any]:
    """Get engine config with validation and safe defaults."""
    config = config or get_config()
    engine_config = config.get('engine', {})

    if not isinstance(engine_config, dict):
        engine_config = {}
    engine_config = dict(engine_config)

    try:
        history_size = int(engine_config.get('history_size', DEFAULT_HISTORY_SIZE))
        if history_size < 1 or history_size > MAX_HISTORY_SIZE:
            history_size = DEFAULT_HISTORY_SIZE
    except (ValueError, TypeError):
        history_size = DEFAULT_HISTORY_SIZE
    engine_config['history_size'] = history_size

    return engine_config


def get_alert_config(config: Optional[ConfigLoader] = None) -> Dict[str, Any]:
    """Get alert config (timezone, default rules, extra rules file) with safe defaults."""
    config = config or get_config()
    alert_config = config.get('alerts', {})

    if not isinstance(alert_config, dict):
        alert_config = {}
    alert_config = dict(alert_config)

    timezone = alert_config.get('timezone') or 'UTC'
    try:
        pytz.timezone(str(timezone))
    except pytz.UnknownTimeZoneError:
        timezone = 'UTC'
    alert_config['timezone'] = str(timezone)
    alert_config.setdefault('load_default_rules', True)
    alert_config.setdefault('rules_file', None)

    return alert_config


def get_logging_config(config: Optional[ConfigLoader] = None) -> Dict[str, Any]:
    config = config or get_config()
    return {
        'level': config.get('logging.level', LOG_LEVEL),
        'file': config.get('logging.file'),
    }
