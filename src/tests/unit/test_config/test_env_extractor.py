"""Tests for environment configuration extraction."""

import os
from unittest.mock import patch

import pytest

from restart_monitor.config import ConfigurationError, EnvironmentConfigExtractor


class TestEnvironmentConfigExtractor:
    """Test cases for EnvironmentConfigExtractor."""

    @pytest.fixture
    def extractor(self):
        """Create EnvironmentConfigExtractor instance."""
        return EnvironmentConfigExtractor()

    def test_extract_environment_config_empty(self, extractor):
        """Test extracting environment config when no variables are set."""
        with patch.dict(os.environ, {}, clear=True):
            assert extractor.extract_environment_config() == {}

    def test_extract_environment_config_with_variables(self, extractor):
        """Test extracting environment configuration with variables set."""
        env_vars = {
            "RESTART_MONITOR_SERVER_DIR": "/srv/gtnh",
            "RESTART_MONITOR_SCREEN_SESSION": "gtnh",
            "RESTART_MONITOR_USE_SUDO": "no",
            "RESTART_MONITOR_VOTE_PERCENTAGE": "75",
            "RESTART_MONITOR_TPS_THRESHOLD": "18.5",
            "RESTART_MONITOR_GLOBAL_COOLDOWN": "1200",
            "RESTART_MONITOR_LOG_JSON": "true",
            "RESTART_MONITOR_LOG_FILE": "none",
        }

        with patch.dict(os.environ, env_vars, clear=True):
            config = extractor.extract_environment_config()

        assert config["server"]["directory"] == "/srv/gtnh"
        assert config["server"]["screen_session"] == "gtnh"
        assert config["server"]["use_sudo"] is False
        assert config["vote"]["percentage"] == 75
        assert config["performance"]["threshold"] == 18.5
        assert config["cooldown"]["global"] == 1200
        assert config["logging"]["json_format"] is True
        assert config["logging"]["file"] is None

    def test_invalid_integer_raises(self, extractor):
        with patch.dict(os.environ, {"RESTART_MONITOR_VOTE_EXPIRY": "five minutes"}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                extractor.extract_environment_config()

        assert exc_info.value.key == "vote.expiry"

    def test_invalid_float_raises(self, extractor):
        with pytest.raises(ConfigurationError, match="Invalid number"):
            extractor.convert_env_value("fast", "performance.threshold")

    def test_nested_config_helpers(self, extractor):
        config = {}
        extractor.set_nested_config(config, "logging.rotation.max_size_mb", 20)

        assert config == {"logging": {"rotation": {"max_size_mb": 20}}}
        assert extractor.get_nested_config_value(config, "logging.rotation.max_size_mb") == 20
        assert extractor.get_nested_config_value(config, "logging.level") is None
        assert extractor.get_nested_config_value(config, "logging.rotation.max_size_mb.x") is None

    def test_environment_variable_for_path(self, extractor):
        assert extractor.get_environment_variable_for_path("cooldown.global") == (
            "RESTART_MONITOR_GLOBAL_COOLDOWN"
        )
        assert extractor.get_environment_variable_for_path("monitor.tick_interval") == ""

    def test_every_mapping_targets_a_schema_key(self, extractor):
        from restart_monitor.config import ConfigurationSchema

        keys = set(ConfigurationSchema.get_all_configuration_keys())
        for env_var, path in extractor.ENV_MAPPINGS.items():
            assert env_var.startswith(extractor.ENV_PREFIX)
            assert path in keys

    def test_get_current_environment_config(self, extractor):
        with patch.dict(
            os.environ,
            {"RESTART_MONITOR_LOG_LEVEL": "DEBUG", "UNRELATED": "x"},
            clear=True,
        ):
            assert extractor.get_current_environment_config() == {
                "RESTART_MONITOR_LOG_LEVEL": "DEBUG"
            }
