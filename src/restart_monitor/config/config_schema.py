"""Configuration schema definition and validation."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@dataclass
class ConfigurationSchema:
    """Configuration schema definition with validation rules."""

    SCHEMA = {
        "server": {
            "type": "dict",
            "schema": {
                "directory": {
                    "type": "string",
                    "default": ".",
                    "help": "Game server directory. Relative paths below resolve against it.",
                },
                "log_file": {
                    "type": "string",
                    "default": "logs/latest.log",
                    "help": "Live game server log that is scanned for votes and TPS output.",
                },
                "screen_session": {
                    "type": "string",
                    "default": "gtnh",
                    "regex": r"^[A-Za-z0-9_.-]+$",
                    "help": "Name of the screen session the game server runs in.",
                },
                "service_name": {
                    "type": "string",
                    "default": "gtnh",
                    "regex": r"^[A-Za-z0-9_.@-]+$",
                    "help": "systemd unit (without .service) restarted by the monitor.",
                },
                "use_sudo": {
                    "type": "boolean",
                    "default": True,
                    "help": "Run systemctl through non-interactive sudo.",
                },
                "player_list_command": {
                    "type": "string",
                    "default": "list",
                    "help": "Console command that prints the online player count.",
                },
            },
        },
        "vote": {
            "type": "dict",
            "schema": {
                "percentage": {
                    "type": "integer",
                    "min": 1,
                    "max": 100,
                    "default": 60,
                    "help": "Percentage of online players that must vote to restart.",
                },
                "min_votes": {
                    "type": "integer",
                    "min": 1,
                    "max": 1000,
                    "default": 1,
                    "help": "Absolute minimum number of votes regardless of player count.",
                },
                "expiry": {
                    "type": "integer",
                    "min": 10,
                    "max": 86400,
                    "default": 300,
                    "help": "Seconds after which an unfinished ballot is discarded.",
                },
                "check_interval": {
                    "type": "integer",
                    "min": 1,
                    "max": 3600,
                    "default": 10,
                    "help": "Seconds between scans of the log for vote commands.",
                },
                "cooldown": {
                    "type": "integer",
                    "min": 0,
                    "max": 86400,
                    "default": 600,
                    "help": "Minimum seconds between two vote-triggered restarts.",
                },
            },
        },
        "performance": {
            "type": "dict",
            "schema": {
                "threshold": {
                    "type": "float",
                    "min": 0.0,
                    "max": 20.0,
                    "default": 19.0,
                    "help": "A TPS sample below this value counts as bad.",
                },
                "cycle_interval": {
                    "type": "integer",
                    "min": 10,
                    "max": 86400,
                    "default": 60,
                    "help": "Seconds between TPS check cycles.",
                },
                "samples_per_cycle": {
                    "type": "integer",
                    "min": 1,
                    "max": 60,
                    "default": 7,
                    "help": "Number of TPS samples taken per cycle.",
                },
                "required_bad_samples": {
                    "type": "integer",
                    "min": 1,
                    "max": 60,
                    "default": 5,
                    "help": "Bad samples within one cycle that trigger a restart.",
                },
                "sample_delay": {
                    "type": "float",
                    "min": 0.0,
                    "max": 60.0,
                    "default": 1.0,
                    "help": "Seconds between two samples of the same cycle.",
                },
                "cooldown": {
                    "type": "integer",
                    "min": 0,
                    "max": 604800,
                    "default": 3600,
                    "help": "Minimum seconds since the last restart before a TPS restart.",
                },
                "query_command": {
                    "type": "string",
                    "default": "forge tps",
                    "help": "Console command that prints per-dimension Mean TPS lines.",
                },
            },
        },
        "cooldown": {
            "type": "dict",
            "schema": {
                "global": {
                    "type": "integer",
                    "min": 0,
                    "max": 604800,
                    "default": 600,
                    "help": "Minimum seconds between any two restarts.",
                },
            },
        },
        "monitor": {
            "type": "dict",
            "schema": {
                "state_dir": {
                    "type": "string",
                    "default": "restart_state",
                    "help": "Directory holding cooldown, ballot and cursor records.",
                },
                "tick_interval": {
                    "type": "float",
                    "min": 0.1,
                    "max": 60.0,
                    "default": 1.0,
                    "help": "Seconds between two iterations of the monitor loop.",
                },
                "offline_poll_interval": {
                    "type": "float",
                    "min": 1.0,
                    "max": 600.0,
                    "default": 10.0,
                    "help": "Seconds to wait while the screen session is missing.",
                },
                "settle_delay": {
                    "type": "float",
                    "min": 0.0,
                    "max": 30.0,
                    "default": 2.0,
                    "help": "Seconds to wait for a console command's output to reach the log.",
                },
                "startup_timeout": {
                    "type": "integer",
                    "min": 0,
                    "max": 3600,
                    "default": 240,
                    "help": "Seconds to wait for the server to finish starting before monitoring.",
                },
            },
        },
        "logging": {
            "type": "dict",
            "schema": {
                "level": {
                    "type": "string",
                    "allowed": LOG_LEVELS,
                    "default": "INFO",
                    "help": "Logging verbosity: DEBUG, INFO, WARNING, ERROR.",
                },
                "file": {
                    "type": "string",
                    "nullable": True,
                    "default": "logs/master_monitor.log",
                    "help": "Monitor log file. Set to null to log to the console only.",
                },
                "json_format": {
                    "type": "boolean",
                    "default": False,
                    "help": "Render log events as JSON instead of console text.",
                },
                "rotation": {
                    "type": "dict",
                    "schema": {
                        "max_size_mb": {
                            "type": "integer",
                            "min": 1,
                            "max": 1000,
                            "default": 10,
                            "help": "Maximum log file size in megabytes before rotation.",
                        },
                        "backup_count": {
                            "type": "integer",
                            "min": 1,
                            "max": 30,
                            "default": 5,
                            "help": "Number of rotated log files to keep.",
                        },
                    },
                },
            },
        },
    }

    @classmethod
    def get_default_configuration(cls) -> Dict[str, Any]:
        """Generate default configuration from schema."""
        return cls._extract_defaults(cls.SCHEMA)

    @classmethod
    def _extract_defaults(cls, schema: Dict[str, Any]) -> Dict[str, Any]:
        defaults = {}

        for key, definition in schema.items():
            if definition.get("type") == "dict" and "schema" in definition:
                defaults[key] = cls._extract_defaults(definition["schema"])
            elif "default" in definition:
                defaults[key] = definition["default"]

        return defaults

    @classmethod
    def get_definition(cls, key: str) -> Optional[Dict[str, Any]]:
        """Return the schema entry for a dotted key, or None if unknown."""
        current: Dict[str, Any] = {"schema": cls.SCHEMA}
        for part in key.split("."):
            children = current.get("schema")
            if not isinstance(children, dict) or part not in children:
                return None
            current = children[part]
        return current

    @classmethod
    def get_configuration_help(cls, key: str) -> Optional[str]:
        """Get help text for a configuration key using dot notation."""
        definition = cls.get_definition(key)
        if definition is None:
            return None
        return definition.get("help")

    @classmethod
    def get_all_configuration_keys(cls) -> list[str]:
        """Get all available configuration keys in dot notation."""
        keys: list[str] = []
        cls._collect_keys(cls.SCHEMA, "", keys)
        return sorted(keys)

    @classmethod
    def _collect_keys(
        cls, schema: Dict[str, Any], prefix: str, keys: list[str]
    ):
        for key, definition in schema.items():
            current_key = f"{prefix}.{key}" if prefix else key
            if definition.get("type") == "dict" and "schema" in definition:
                cls._collect_keys(definition["schema"], current_key, keys)
            else:
                keys.append(current_key)

    @classmethod
    def validate_configuration_value(
        cls, key: str, value: Any
    ) -> tuple[bool, Optional[str]]:
        """Validate a single configuration value."""
        definition = cls.get_definition(key)
        if definition is None:
            return False, f"Unknown configuration key: {key}"
        if definition.get("type") == "dict":
            return False, f"{key} is a section, not a value"
        return cls._validate_value(value, definition, key)

    @classmethod
    def _validate_value(
        cls, value: Any, definition: Dict[str, Any], key: str
    ) -> tuple[bool, Optional[str]]:
        if value is None:
            if definition.get("nullable"):
                return True, None
            return False, f"{key} must not be empty"

        expected_type = definition.get("type")

        # bool is a subclass of int, so it has to be rejected explicitly
        if expected_type == "string" and not isinstance(value, str):
            return False, f"{key} must be a string"
        elif expected_type == "integer" and (
            not isinstance(value, int) or isinstance(value, bool)
        ):
            return False, f"{key} must be an integer"
        elif expected_type == "float" and (
            not isinstance(value, (int, float)) or isinstance(value, bool)
        ):
            return False, f"{key} must be a number"
        elif expected_type == "boolean" and not isinstance(value, bool):
            return False, f"{key} must be a boolean"

        if expected_type in ["integer", "float"]:
            if "min" in definition and value < definition["min"]:
                return False, f"{key} must be at least {definition['min']}"
            if "max" in definition and value > definition["max"]:
                return False, f"{key} must be at most {definition['max']}"

        if "allowed" in definition and value not in definition["allowed"]:
            allowed = ", ".join(str(v) for v in definition["allowed"])
            return False, f"{key} must be one of: {allowed}"

        if expected_type == "string" and "regex" in definition:
            if not re.match(definition["regex"], value):
                return False, f"{key} has invalid format"

        return True, None
