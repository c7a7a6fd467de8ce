"""Configuration-related exceptions."""

from typing import Any, Dict, List, Optional


class ConfigurationError(Exception):
    """Raised when the monitor configuration cannot be loaded or is invalid."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        key: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        self.key = key
        super().__init__(message)

    @property
    def validation_errors(self) -> List[str]:
        """Validation messages collected while checking the configuration."""
        return list(self.details.get("validation_errors", []))

    def __str__(self) -> str:
        prefix = f"[{self.key}] " if self.key else ""
        if self.details:
            return f"{prefix}{self.message} (Details: {self.details})"
        return f"{prefix}{self.message}"
