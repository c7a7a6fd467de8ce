"""Tests for configuration schema validation."""

import pytest

from restart_monitor.config import ConfigurationSchema


class TestConfigurationSchema:
    """Test cases for ConfigurationSchema."""

    def test_default_configuration_shape(self):
        defaults = ConfigurationSchema.get_default_configuration()

        assert defaults["server"]["log_file"] == "logs/latest.log"
        assert defaults["server"]["player_list_command"] == "list"
        assert defaults["performance"]["query_command"] == "forge tps"
        assert defaults["monitor"]["state_dir"] == "restart_state"
        assert defaults["logging"]["rotation"] == {"max_size_mb": 10, "backup_count": 5}

    def test_get_all_configuration_keys(self):
        keys = ConfigurationSchema.get_all_configuration_keys()

        assert "cooldown.global" in keys
        assert "logging.rotation.backup_count" in keys
        assert "logging.rotation" not in keys
        assert keys == sorted(keys)

    @pytest.mark.parametrize(
        "key,value",
        [
            ("vote.percentage", 60),
            ("performance.threshold", 18),
            ("performance.threshold", 19.5),
            ("logging.file", None),
            ("server.use_sudo", False),
            ("server.screen_session", "gtnh-2"),
        ],
    )
    def test_valid_values(self, key, value):
        is_valid, error = ConfigurationSchema.validate_configuration_value(key, value)
        assert is_valid, error

    @pytest.mark.parametrize(
        "key,value,message",
        [
            ("vote.percentage", 0, "at least 1"),
            ("vote.percentage", "60", "must be an integer"),
            ("vote.min_votes", True, "must be an integer"),
            ("performance.threshold", 25.0, "at most 20.0"),
            ("server.use_sudo", "yes", "must be a boolean"),
            ("server.screen_session", "bad name", "invalid format"),
            ("server.directory", None, "must not be empty"),
            ("logging.level", "TRACE", "must be one of"),
        ],
    )
    def test_invalid_values(self, key, value, message):
        is_valid, error = ConfigurationSchema.validate_configuration_value(key, value)
        assert not is_valid
        assert message in error

    def test_unknown_key(self):
        is_valid, error = ConfigurationSchema.validate_configuration_value("vote.colour", 1)
        assert not is_valid
        assert "Unknown configuration key" in error

    def test_section_is_not_a_value(self):
        is_valid, error = ConfigurationSchema.validate_configuration_value("vote", {})
        assert not is_valid
        assert "section" in error

    def test_configuration_help(self):
        assert "Minimum seconds between any two restarts" in ConfigurationSchema.get_configuration_help(
            "cooldown.global"
        )
        assert ConfigurationSchema.get_configuration_help("missing.key") is None
