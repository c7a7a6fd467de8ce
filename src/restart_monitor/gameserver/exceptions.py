"""Errors raised while talking to the game server and its supervisor."""

from typing import Any, Dict, Optional


class MonitorError(Exception):
    """Base error for the restart monitor with user-friendly messages."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        super().__init__(message)


class ChannelError(MonitorError):
    """The console channel to the game server could not be used."""


class SessionNotAttachedError(ChannelError):
    """The screen session hosting the game server does not exist."""

    def __init__(self, session: str):
        super().__init__(
            f"Screen session '{session}' not found",
            suggestion="Check that the game server is running and server.screen_session is correct",
            details={"session": session},
        )
        self.session = session


class LogUnavailableError(ChannelError):
    """The game server log could not be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Cannot read server log {path}: {reason}",
            details={"path": path},
        )
        self.path = path


class RestartFailedError(MonitorError):
    """The supervisor refused or failed to restart the game server unit."""

    def __init__(self, unit: str, returncode: Optional[int], output: str = ""):
        super().__init__(
            f"Failed to restart {unit} (exit code {returncode})",
            suggestion="Check the sudoers grant for systemctl and that the unit exists",
            details={"unit": unit, "returncode": returncode, "output": output},
        )
        self.unit = unit
        self.returncode = returncode
