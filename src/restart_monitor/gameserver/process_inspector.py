"""Resource metrics of the game server process running inside screen."""

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import psutil
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class GameProcessMetrics:
    """Point-in-time metrics of the game server process."""

    pid: int
    name: str
    cpu_percent: float
    memory_mb: float
    memory_percent: float
    threads: int
    uptime_seconds: float
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class GameProcessInspector:
    """Locates the screen session process and the game server it hosts."""

    def __init__(self, session: str, game_process_names: Optional[List[str]] = None):
        self.session = session
        self.game_process_names = game_process_names or ["java"]

    def _is_session_process(self, process: psutil.Process) -> bool:
        name = (process.info.get("name") or "").lower()
        if name != "screen":
            return False
        cmdline = process.info.get("cmdline") or []
        for i, arg in enumerate(cmdline):
            # -S, -dmS and -DmS all take the session name as the next argument
            if arg.startswith("-") and arg.endswith("S") and i + 1 < len(cmdline):
                if cmdline[i + 1] == self.session:
                    return True
        return False

    def find_session_process(self) -> Optional[psutil.Process]:
        """The screen process that owns the configured session."""
        for process in psutil.process_iter(["pid", "name", "cmdline"]):
            try:
                if self._is_session_process(process):
                    return process
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return None

    def find_game_process(self) -> Optional[psutil.Process]:
        """The game server process, falling back to the screen process itself."""
        session_process = self.find_session_process()
        if session_process is None:
            return None

        try:
            for child in session_process.children(recursive=True):
                if child.name() in self.game_process_names:
                    return child
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.debug("Cannot inspect screen children", error=str(e))

        return session_process

    def get_metrics(self) -> Optional[GameProcessMetrics]:
        """Collect metrics for the game server process, or None if absent."""
        process = self.find_game_process()
        if process is None:
            return None

        try:
            with process.oneshot():
                memory_info = process.memory_info()
                return GameProcessMetrics(
                    pid=process.pid,
                    name=process.name(),
                    cpu_percent=process.cpu_percent(interval=0.1),
                    memory_mb=memory_info.rss / 1024 / 1024,
                    memory_percent=process.memory_percent(),
                    threads=process.num_threads(),
                    uptime_seconds=time.time() - process.create_time(),
                    status=process.status(),
                )
        except (psutil.NoSuchProcess, psutil.AccessDenied) as e:
            logger.warning(
                "Failed to get process metrics", pid=process.pid, error=str(e)
            )
            return None
