"""Main configuration manager orchestrating all configuration operations."""

import copy
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config_schema import ConfigurationSchema
from .env_extractor import EnvironmentConfigExtractor
from .exceptions import ConfigurationError
from .settings import MonitorSettings


class ConfigurationManager:
    """Loads, validates and writes the monitor configuration."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration manager.

        Args:
            config_dir: Directory for configuration files (default: ~/.restart-monitor)
        """
        self.config_dir = config_dir or (Path.home() / ".restart-monitor")
        self.config_file = self.config_dir / "config.yaml"

        self.schema = ConfigurationSchema()
        self.env_extractor = EnvironmentConfigExtractor()

    async def load_configuration(
        self, config_file: Optional[str] = None
    ) -> Dict[str, Any]:
        """Load configuration with hierarchy: defaults < file < environment.

        Args:
            config_file: Path to configuration file (default: ~/.restart-monitor/config.yaml)

        Returns:
            Complete configuration dictionary

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            config = self.schema.get_default_configuration()

            file_path = Path(config_file) if config_file else self.config_file
            if file_path.exists():
                file_config = self._load_config_file(file_path)
                config = self._merge_configurations(config, file_config)
            elif config_file:
                raise ConfigurationError(
                    f"Configuration file not found: {file_path}",
                    {"suggestion": "Run 'restart-monitor config init' to create one"},
                )

            env_config = self.env_extractor.extract_environment_config()
            if env_config:
                config = self._merge_configurations(config, env_config)

            errors = self._validate_complete_configuration(config)
            if errors:
                raise ConfigurationError(
                    "Configuration validation failed",
                    {"validation_errors": errors},
                )

            return config

        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {str(e)}")

    async def load_settings(self, config_file: Optional[str] = None) -> MonitorSettings:
        """Load the configuration and convert it into typed settings."""
        config = await self.load_configuration(config_file)
        return MonitorSettings.from_config(config)

    def _load_config_file(self, file_path: Path) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()

            if file_path.suffix.lower() == ".json":
                loaded = json.loads(content)
            else:
                loaded = yaml.safe_load(content) or {}

        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Invalid configuration file format: {file_path}",
                {"parse_error": str(e)},
            )
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read configuration file: {file_path}",
                {"error": str(e)},
            )

        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {file_path}"
            )
        return loaded

    def _merge_configurations(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = copy.deepcopy(base)

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_configurations(result[key], value)
            else:
                result[key] = copy.deepcopy(value)

        return result

    def _validate_complete_configuration(
        self, config: Dict[str, Any]
    ) -> List[str]:
        """Validate complete configuration and return list of errors."""
        errors = []

        for key in self.schema.get_all_configuration_keys():
            value = self.env_extractor.get_nested_config_value(config, key)
            is_valid, error_msg = self.schema.validate_configuration_value(
                key, value
            )
            if not is_valid:
                errors.append(error_msg)

        errors.extend(self._validate_cross_field_constraints(config))

        return errors

    def _validate_cross_field_constraints(
        self, config: Dict[str, Any]
    ) -> List[str]:
        """Validate constraints that span multiple configuration fields."""
        errors = []
        get = self.env_extractor.get_nested_config_value

        samples = get(config, "performance.samples_per_cycle")
        required = get(config, "performance.required_bad_samples")
        if isinstance(samples, int) and isinstance(required, int) and required > samples:
            errors.append(
                "performance.required_bad_samples cannot exceed "
                "performance.samples_per_cycle"
            )

        return errors

    def _get_configuration_warnings(self, config: Dict[str, Any]) -> List[str]:
        """Get configuration warnings (non-critical issues)."""
        warnings = []
        get = self.env_extractor.get_nested_config_value

        tps_cooldown = get(config, "performance.cooldown")
        global_cooldown = get(config, "cooldown.global")
        if tps_cooldown is not None and global_cooldown is not None:
            if tps_cooldown < global_cooldown:
                warnings.append(
                    "TPS cooldown is shorter than the global cooldown; "
                    "the global cooldown will still apply"
                )

        if get(config, "vote.expiry") is not None and get(config, "vote.check_interval") is not None:
            if get(config, "vote.expiry") <= get(config, "vote.check_interval"):
                warnings.append(
                    "Votes expire before the next scan; ballots can never accumulate"
                )

        if get(config, "logging.level") == "DEBUG":
            warnings.append(
                "Debug logging records every TPS sample and grows the log quickly"
            )

        return warnings

    async def save_configuration(
        self, config: Dict[str, Any], config_file: Optional[str] = None
    ) -> None:
        """Save configuration to file.

        Raises:
            ConfigurationError: If save operation fails
        """
        try:
            file_path = Path(config_file) if config_file else self.config_file
            file_path.parent.mkdir(parents=True, exist_ok=True)

            if file_path.suffix.lower() == ".json":
                with open(file_path, "w", encoding="utf-8") as f:
                    json.dump(config, f, indent=2)
            else:
                with open(file_path, "w", encoding="utf-8") as f:
                    f.write("# Restart Monitor Configuration\n")
                    f.write(f"# Generated on: {datetime.now().isoformat()}\n\n")
                    yaml.dump(
                        config, f, default_flow_style=False, sort_keys=False
                    )

        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {str(e)}")

    async def get_configuration_value(
        self, key: str, config_file: Optional[str] = None
    ) -> Any:
        """Get a specific configuration value in dot notation."""
        config = await self.load_configuration(config_file)
        return self.env_extractor.get_nested_config_value(config, key)

    async def initialize_configuration(
        self,
        config_file: Optional[str] = None,
        overwrite: bool = False,
    ) -> Path:
        """Write a configuration file containing the schema defaults.

        Raises:
            ConfigurationError: If the file exists and overwrite is not set
        """
        file_path = Path(config_file) if config_file else self.config_file

        if file_path.exists() and not overwrite:
            raise ConfigurationError(
                f"Configuration file already exists: {file_path}",
                {
                    "suggestion": "Use --force to overwrite or choose a different path"
                },
            )

        await self.save_configuration(
            self.schema.get_default_configuration(), str(file_path)
        )
        return file_path

    async def validate_configuration(
        self, config_file: Optional[str] = None
    ) -> tuple[bool, List[str], List[str]]:
        """Validate configuration file.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        try:
            config = await self.load_configuration(config_file)
        except ConfigurationError as e:
            return False, e.validation_errors or [e.message], []

        warnings = self._get_configuration_warnings(config)
        return True, [], warnings

    def get_configuration_help(self, key: Optional[str] = None) -> str:
        """Get help information for one key or for the whole configuration."""
        if key:
            help_text = self.schema.get_configuration_help(key)
            if not help_text:
                return f"No help available for '{key}'"
            env_var = self.env_extractor.get_environment_variable_for_path(key)
            if env_var:
                help_text += f"\n\nEnvironment variable: {env_var}"
            return help_text

        return """Configuration Management Help

Available configuration sections:
- server.*: Server directory, log file, screen session, systemd unit
- vote.*: Vote percentage, minimum votes, expiry, scan interval, cooldown
- performance.*: TPS threshold, cycle interval, samples, cooldown
- cooldown.*: Global cooldown shared by all restart triggers
- monitor.*: State directory and loop timings
- logging.*: Log level, file and rotation

Use dot notation to access nested settings:
  restart-monitor config show vote.percentage

Environment variables:
Most settings can be overridden with RESTART_MONITOR_* environment variables.
Use 'restart-monitor config env-help' for details.
"""

    def get_environment_help(self) -> str:
        """Get help for environment variables."""
        env_docs = self.env_extractor.get_environment_documentation()

        help_text = "Environment Variable Configuration\n"
        help_text += "=" * 50 + "\n\n"

        for env_var, description in sorted(env_docs.items()):
            help_text += f"{env_var}\n  {description}\n\n"

        return help_text
