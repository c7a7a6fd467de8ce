"""Adapters for the game server console, its log and its systemd unit."""

from .channel import ScreenChannel
from .exceptions import (
    ChannelError,
    LogUnavailableError,
    MonitorError,
    RestartFailedError,
    SessionNotAttachedError,
)
from .log_cursor import LogCursor
from .supervisor import SystemdSupervisor

__all__ = [
    "ChannelError",
    "LogCursor",
    "LogUnavailableError",
    "MonitorError",
    "RestartFailedError",
    "ScreenChannel",
    "SessionNotAttachedError",
    "SystemdSupervisor",
]
