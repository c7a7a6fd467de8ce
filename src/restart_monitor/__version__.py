"""Version information for restart-monitor."""

__version__ = "1.0.1"
