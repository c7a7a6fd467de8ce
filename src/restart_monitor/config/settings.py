"""Typed, read-only settings handed to every monitor component."""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class ServerSettings(_Section):
    """Game server location and the handles used to reach it."""

    directory: str = Field(default=".", description="Game server directory")
    log_file: str = Field(default="logs/latest.log", description="Live server log")
    screen_session: str = Field(default="gtnh", description="screen session name")
    service_name: str = Field(default="gtnh", description="systemd unit name")
    use_sudo: bool = Field(default=True, description="Wrap systemctl in sudo -n")
    player_list_command: str = Field(default="list", description="Player count command")


class VoteSettings(_Section):
    """Vote quorum and timing settings."""

    percentage: int = Field(default=60, description="Quorum percent of online players")
    min_votes: int = Field(default=1, description="Absolute minimum quorum")
    expiry: int = Field(default=300, description="Ballot expiry in seconds")
    check_interval: int = Field(default=10, description="Seconds between vote scans")
    cooldown: int = Field(default=600, description="Seconds between vote restarts")


class PerformanceSettings(_Section):
    """TPS sampling settings."""

    threshold: float = Field(default=19.0, description="Bad-sample threshold")
    cycle_interval: int = Field(default=60, description="Seconds between cycles")
    samples_per_cycle: int = Field(default=7, description="Samples per cycle")
    required_bad_samples: int = Field(default=5, description="Bad samples to restart")
    sample_delay: float = Field(default=1.0, description="Seconds between samples")
    cooldown: int = Field(default=3600, description="Seconds since last restart")
    query_command: str = Field(default="forge tps", description="TPS query command")


class CooldownSettings(_Section):
    """Cooldown shared by every restart trigger."""

    global_cooldown: int = Field(default=600, alias="global")


class LoopSettings(_Section):
    """Monitor loop timings and state location."""

    state_dir: str = Field(default="restart_state")
    tick_interval: float = Field(default=1.0)
    offline_poll_interval: float = Field(default=10.0)
    settle_delay: float = Field(default=2.0)
    startup_timeout: int = Field(default=240)


class LogRotationSettings(_Section):
    max_size_mb: int = 10
    backup_count: int = 5


class LoggingSettings(_Section):
    """Logging configuration settings."""

    level: str = Field(default="INFO", description="Log level")
    file: Optional[str] = Field(default="logs/master_monitor.log", description="Log file path")
    json_format: bool = Field(default=False, description="Use JSON log format")
    rotation: LogRotationSettings = Field(default_factory=LogRotationSettings)


class MonitorSettings(_Section):
    """Complete monitor settings."""

    server: ServerSettings = Field(default_factory=ServerSettings)
    vote: VoteSettings = Field(default_factory=VoteSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    cooldown: CooldownSettings = Field(default_factory=CooldownSettings)
    monitor: LoopSettings = Field(default_factory=LoopSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MonitorSettings":
        """Build settings from a validated configuration dictionary."""
        return cls.model_validate(config)

    def _resolve(self, path: str) -> Path:
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return Path(self.server.directory).expanduser() / candidate

    def get_server_log_path(self) -> Path:
        """Path of the live game server log."""
        return self._resolve(self.server.log_file)

    def get_state_dir(self) -> Path:
        """Directory holding the persisted monitor state."""
        return self._resolve(self.monitor.state_dir)

    def get_log_file_path(self) -> Optional[Path]:
        """Get the monitor's own log file path if configured."""
        if self.logging.file:
            return self._resolve(self.logging.file)
        return None
