"""Environment variable configuration extraction for the restart monitor."""

import os
from typing import Any, Dict, Union

from .config_schema import ConfigurationSchema
from .exceptions import ConfigurationError


class EnvironmentConfigExtractor:
    """Extracts configuration from environment variables with systematic mapping."""

    ENV_PREFIX = "RESTART_MONITOR_"

    ENV_MAPPINGS = {
        # Game server
        "RESTART_MONITOR_SERVER_DIR": "server.directory",
        "RESTART_MONITOR_SERVER_LOG_FILE": "server.log_file",
        "RESTART_MONITOR_SCREEN_SESSION": "server.screen_session",
        "RESTART_MONITOR_SERVICE_NAME": "server.service_name",
        "RESTART_MONITOR_USE_SUDO": "server.use_sudo",
        # Votes
        "RESTART_MONITOR_VOTE_PERCENTAGE": "vote.percentage",
        "RESTART_MONITOR_VOTE_MIN_VOTES": "vote.min_votes",
        "RESTART_MONITOR_VOTE_EXPIRY": "vote.expiry",
        "RESTART_MONITOR_VOTE_CHECK_INTERVAL": "vote.check_interval",
        "RESTART_MONITOR_VOTE_COOLDOWN": "vote.cooldown",
        # TPS
        "RESTART_MONITOR_TPS_THRESHOLD": "performance.threshold",
        "RESTART_MONITOR_TPS_CYCLE_INTERVAL": "performance.cycle_interval",
        "RESTART_MONITOR_TPS_SAMPLES": "performance.samples_per_cycle",
        "RESTART_MONITOR_TPS_REQUIRED_BAD": "performance.required_bad_samples",
        "RESTART_MONITOR_TPS_SAMPLE_DELAY": "performance.sample_delay",
        "RESTART_MONITOR_TPS_COOLDOWN": "performance.cooldown",
        # Cooldowns and state
        "RESTART_MONITOR_GLOBAL_COOLDOWN": "cooldown.global",
        "RESTART_MONITOR_STATE_DIR": "monitor.state_dir",
        # Logging
        "RESTART_MONITOR_LOG_LEVEL": "logging.level",
        "RESTART_MONITOR_LOG_FILE": "logging.file",
        "RESTART_MONITOR_LOG_JSON": "logging.json_format",
    }

    def extract_environment_config(self) -> Dict[str, Any]:
        """Extract configuration from environment variables.

        Returns:
            Dict containing configuration values extracted from environment

        Raises:
            ConfigurationError: If a variable cannot be converted to its type
        """
        config: Dict[str, Any] = {}

        for env_var, config_path in self.ENV_MAPPINGS.items():
            if env_var in os.environ:
                value = self.convert_env_value(os.environ[env_var], config_path)
                self.set_nested_config(config, config_path, value)

        return config

    def convert_env_value(
        self, env_value: str, config_path: str
    ) -> Union[str, int, bool, float, None]:
        """Convert environment variable value to the type the schema expects.

        Args:
            env_value: Raw environment variable value
            config_path: Configuration path for type inference

        Returns:
            Converted value with appropriate type
        """
        definition = ConfigurationSchema.get_definition(config_path) or {}
        expected_type = definition.get("type", "string")

        if expected_type == "boolean":
            return env_value.strip().lower() in ("true", "1", "yes", "on", "enabled")

        if expected_type == "integer":
            try:
                return int(env_value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid integer value for {config_path}: {env_value}",
                    key=config_path,
                )

        if expected_type == "float":
            try:
                return float(env_value)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid number for {config_path}: {env_value}",
                    key=config_path,
                )

        if definition.get("nullable") and env_value.strip().lower() in ("", "none", "null"):
            return None

        return env_value

    def set_nested_config(self, config: Dict[str, Any], path: str, value: Any):
        """Set nested configuration value using dot notation.

        Args:
            config: Configuration dictionary to modify
            path: Dot-separated path (e.g., 'vote.percentage')
            value: Value to set
        """
        keys = path.split(".")
        current = config

        for key in keys[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def get_nested_config_value(self, config: Dict[str, Any], path: str) -> Any:
        """Get nested configuration value using dot notation.

        Returns:
            Value at the specified path, or None if not found
        """
        current: Any = config

        try:
            for key in path.split("."):
                current = current[key]
            return current
        except (KeyError, TypeError):
            return None

    def get_environment_variable_for_path(self, config_path: str) -> str:
        """Get the environment variable name for a configuration path."""
        for env_var, path in self.ENV_MAPPINGS.items():
            if path == config_path:
                return env_var
        return ""

    def get_environment_documentation(self) -> Dict[str, str]:
        """Map every supported environment variable to its help text and default."""
        docs = {}
        defaults = ConfigurationSchema.get_default_configuration()

        for env_var, path in self.ENV_MAPPINGS.items():
            help_text = ConfigurationSchema.get_configuration_help(path) or path
            default = self.get_nested_config_value(defaults, path)
            docs[env_var] = f"{help_text} (default: {default})"

        return docs

    def get_current_environment_config(self) -> Dict[str, str]:
        """Get currently set environment variables related to configuration."""
        return {
            env_var: os.environ[env_var]
            for env_var in self.ENV_MAPPINGS
            if env_var in os.environ
        }
