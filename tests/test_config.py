"""Tests for configuration loading and validation."""
import pytest
from pathlib import Path
import yaml
from machine_alerts import config as config_module
from machine_alerts.config import (
    ConfigLoader,
    DEFAULT_HISTORY_SIZE,
    get_alert_config,
    get_engine_config,
    get_logging_config,
)


def write_config(tmp_path: Path, config: dict, name: str = 'engine.yaml') -> ConfigLoader:
    config_file = tmp_path / name
    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(config, f, allow_unicode=True)
    return ConfigLoader(str(config_file))


class TestConfigLoaderBasics:
    """Tests for basic ConfigLoader functionality."""

    def test_config_loader_init(self, test_config_yaml: Path):
        """ConfigLoader should initialize with valid YAML file."""
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.raw is not None

    def test_config_loader_missing_file(self):
        """ConfigLoader should raise FileNotFoundError for missing file."""
        with pytest.raises(FileNotFoundError):
            ConfigLoader("/nonexistent/path/engine.yaml")

    def test_config_loader_missing_section(self, tmp_path: Path):
        """ConfigLoader should raise ValueError for missing required sections."""
        with pytest.raises(ValueError, match="Missing required config section: alerts"):
            write_config(tmp_path, {'engine': {'history_size': 10}})

    def test_config_loader_not_a_mapping(self, tmp_path: Path):
        """Top-level lists are rejected."""
        config_file = tmp_path / 'list.yaml'
        config_file.write_text("- engine\n- alerts\n", encoding='utf-8')
        with pytest.raises(ValueError, match="mapping"):
            ConfigLoader(str(config_file))

    def test_config_loader_raw_property(self, test_config_yaml: Path):
        """ConfigLoader.raw should return the raw config dictionary."""
        raw = ConfigLoader(str(test_config_yaml)).raw
        assert isinstance(raw, dict)
        assert 'engine' in raw
        assert 'alerts' in raw


class TestConfigLoaderDotNotation:
    """Tests for dot-notation config access."""

    def test_get_nested_key(self, test_config_yaml: Path):
        """Get nested key with dot notation."""
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('engine.history_size') == 50
        assert loader.get('alerts.timezone') == 'UTC'

    def test_get_nonexistent_key_with_default(self, test_config_yaml: Path):
        """Get nonexistent key should return default."""
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('nonexistent.key', 'default_value') == 'default_value'
        assert loader.get('nonexistent.key') is None

    def test_get_partial_path(self, test_config_yaml: Path):
        """Paths through scalar values return default."""
        loader = ConfigLoader(str(test_config_yaml))
        assert loader.get('alerts.timezone.deep', 'fallback') == 'fallback'

    def test_env_substitution(self, tmp_path: Path, monkeypatch):
        """${VAR} values are read from the environment."""
        monkeypatch.setenv('ALERT_TZ', 'Asia/Seoul')
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {'timezone': '${ALERT_TZ}'}})
        assert loader.get('alerts.timezone') == 'Asia/Seoul'

    def test_env_substitution_unset(self, tmp_path: Path, monkeypatch):
        """Unset variables fall back to default."""
        monkeypatch.delenv('ALERT_TZ', raising=False)
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {'timezone': '${ALERT_TZ}'}})
        assert loader.get('alerts.timezone', 'UTC') == 'UTC'


class TestEngineConfigValidation:
    """Tests for engine config validation and safe defaults."""

    def test_history_size_from_file(self, test_config_yaml: Path):
        """Valid history_size is kept."""
        engine_config = get_engine_config(ConfigLoader(str(test_config_yaml)))
        assert engine_config['history_size'] == 50

    @pytest.mark.parametrize("history_size", [0, -5, 1_000_000, 'invalid', None])
    def test_history_size_fallback(self, tmp_path: Path, history_size):
        """Invalid history_size falls back to the default."""
        loader = write_config(tmp_path, {'engine': {'history_size': history_size}, 'alerts': {}})
        assert get_engine_config(loader)['history_size'] == DEFAULT_HISTORY_SIZE

    def test_empty_engine_section(self, tmp_path: Path):
        """Empty section uses defaults."""
        loader = write_config(tmp_path, {'engine': None, 'alerts': None})
        assert get_engine_config(loader)['history_size'] == DEFAULT_HISTORY_SIZE


class TestAlertConfig:
    """Tests for alert config defaults."""

    def test_alert_config_defaults(self, tmp_path: Path):
        """Missing keys get safe defaults."""
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {}})
        alert_config = get_alert_config(loader)
        assert alert_config['timezone'] == 'UTC'
        assert alert_config['load_default_rules'] is True
        assert alert_config['rules_file'] is None

    @pytest.mark.parametrize("timezone", [None, '', 'Mars/Olympus'])
    def test_alert_config_timezone_fallback(self, tmp_path: Path, timezone):
        """Null, empty or unknown timezone falls back to UTC."""
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {'timezone': timezone}})
        assert get_alert_config(loader)['timezone'] == 'UTC'

    def test_alert_config_custom_values(self, tmp_path: Path):
        """Custom values are preserved."""
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {
            'timezone': 'Asia/Seoul',
            'load_default_rules': False,
            'rules_file': 'rules/site.yaml',
        }})
        alert_config = get_alert_config(loader)
        assert alert_config['timezone'] == 'Asia/Seoul'
        assert alert_config['load_default_rules'] is False
        assert alert_config['rules_file'] == 'rules/site.yaml'


class TestLoggingConfig:
    """Tests for logging config."""

    def test_logging_config_from_file(self, test_config_yaml: Path):
        """Level comes from the file."""
        logging_config = get_logging_config(ConfigLoader(str(test_config_yaml)))
        assert logging_config == {'level': 'DEBUG', 'file': None}

    def test_logging_config_defaults(self, tmp_path: Path):
        """Without a logging section the env level is used."""
        loader = write_config(tmp_path, {'engine': {}, 'alerts': {}})
        assert get_logging_config(loader)['level'] == config_module.LOG_LEVEL


class TestConfigSingleton:
    """Tests for the global config instance."""

    def test_reload_config(self, test_config_yaml: Path, monkeypatch):
        """reload_config switches the global instance."""
        monkeypatch.setattr(config_module, '_config_instance', None)
        loader = config_module.reload_config(str(test_config_yaml))
        assert config_module.get_config() is loader
        assert get_engine_config()['history_size'] == 50

    def test_get_config_uses_env(self, test_config_yaml: Path, monkeypatch):
        """CONFIG_FILE env var picks the file."""
        monkeypatch.setattr(config_module, '_config_instance', None)
        monkeypatch.setenv('CONFIG_FILE', str(test_config_yaml))
        assert config_module.get_config().get('engine.history_size') == 50


class TestConfigEdgeCases:
    """Edge cases and boundary conditions."""

    def test_config_with_unicode_characters(self, tmp_path: Path):
        """Config should handle Unicode characters."""
        loader = write_config(tmp_path, {'engine': {'site': '스마트 공장'}, 'alerts': {}})
        assert loader.get('engine.site') == '스마트 공장'
