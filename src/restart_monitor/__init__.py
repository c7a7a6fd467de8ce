"""Restart monitor for long-running game servers.

Watches a game server running in a screen session and restarts it through
systemd when players vote for it or when TPS stays degraded.
"""

from .__version__ import __version__

__all__ = ["__version__"]
