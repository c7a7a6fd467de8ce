"""Configuration management package for the restart monitor."""

from .config_manager import ConfigurationManager
from .config_schema import ConfigurationSchema
from .env_extractor import EnvironmentConfigExtractor
from .exceptions import ConfigurationError
from .settings import MonitorSettings

__all__ = [
    "ConfigurationManager",
    "ConfigurationError",
    "ConfigurationSchema",
    "EnvironmentConfigExtractor",
    "MonitorSettings",
]
