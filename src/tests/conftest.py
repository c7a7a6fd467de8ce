"""Pytest configuration and shared fixtures."""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from restart_monitor.config.config_schema import ConfigurationSchema
from restart_monitor.config.settings import MonitorSettings
from restart_monitor.gameserver.exceptions import RestartFailedError, SessionNotAttachedError
from restart_monitor.gameserver.log_cursor import LogCursor
from restart_monitor.monitoring.cooldown import CooldownCoordinator
from restart_monitor.monitoring.sequencer import RestartSequencer
from restart_monitor.storage.state_store import StateStore

START_TIME = 1_700_000_000.0


class FakeClock:
    """Clock whose time only moves when something sleeps."""

    def __init__(self, start: float = START_TIME):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeChannel:
    """In-memory console: a command with a canned reply replaces the visible output."""

    def __init__(self, session: str = "gtnh"):
        self.session = session
        self.attached = True
        self.sent: List[str] = []
        self.output: List[str] = []
        self.responses: Dict[str, List[List[str]]] = {}

    def respond(self, command: str, *replies: List[str]) -> None:
        """Queue replies for a command; the last one repeats."""
        self.responses[command] = list(replies)

    async def is_attached(self) -> bool:
        return self.attached

    async def send(self, command: str) -> None:
        if not self.attached:
            raise SessionNotAttachedError(self.session)
        self.sent.append(command)
        queue = self.responses.get(command)
        if queue:
            reply = queue.pop(0) if len(queue) > 1 else queue[0]
            self.output = list(reply)

    async def say(self, message: str) -> None:
        await self.send(f"say {message}")

    @property
    def said(self) -> List[str]:
        return [cmd[len("say "):] for cmd in self.sent if cmd.startswith("say ")]

    def recent_output(self, max_lines: int) -> List[str]:
        return self.output[-max_lines:]


class FakeSupervisor:
    """Records restart requests, optionally failing them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.restarts = 0
        self.restart_times: List[float] = []
        self.clock: Optional[FakeClock] = None

    async def restart(self) -> None:
        self.restarts += 1
        if self.clock is not None:
            self.restart_times.append(self.clock.now())
        if self.fail:
            raise RestartFailedError("gtnh.service", 1, "sudo: a password is required")


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


@pytest.fixture
def server_dir(tmp_path) -> Path:
    (tmp_path / "logs").mkdir()
    (tmp_path / "logs" / "latest.log").write_text("")
    return tmp_path


@pytest.fixture
def make_settings(server_dir):
    """Build settings rooted at the temporary server directory."""

    def factory(**sections: Dict[str, Any]) -> MonitorSettings:
        config = ConfigurationSchema.get_default_configuration()
        config["server"]["directory"] = str(server_dir)
        config["logging"]["file"] = None
        return MonitorSettings.from_config(_merge(config, sections))

    return factory


@pytest.fixture
def settings(make_settings) -> MonitorSettings:
    return make_settings()


@pytest.fixture
def log_path(settings) -> Path:
    return settings.get_server_log_path()


@pytest.fixture
def append_log(log_path):
    """Append lines to the fake server log."""

    def append(*lines: str) -> None:
        with open(log_path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")

    return append


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def supervisor(clock) -> FakeSupervisor:
    supervisor = FakeSupervisor()
    supervisor.clock = clock
    return supervisor


@pytest.fixture
def store(settings) -> StateStore:
    return StateStore(settings.get_state_dir())


@pytest.fixture
def log_cursor(log_path) -> LogCursor:
    return LogCursor(log_path)


@pytest.fixture
def cooldowns(store, settings, clock) -> CooldownCoordinator:
    return CooldownCoordinator(store, settings.cooldown.global_cooldown, clock)


@pytest.fixture
def sequencer(channel, supervisor, cooldowns, clock) -> RestartSequencer:
    return RestartSequencer(channel, supervisor, cooldowns, clock)


class GameLog:
    """Builders for lines the game server writes to its log."""

    @staticmethod
    def vote(name: str, command: str = "!restart") -> str:
        return f"[12:00:00] [Server thread/INFO]: <{name}> {command}"

    @staticmethod
    def chat(name: str, text: str) -> str:
        return f"[12:00:00] [Server thread/INFO]: <{name}> {text}"

    @staticmethod
    def player_list(online: int, capacity: int = 20) -> List[str]:
        return [
            f"[12:00:01] [Server thread/INFO]: There are {online}/{capacity} players online:"
        ]

    @staticmethod
    def tps_report(*dimensions: float) -> List[str]:
        return [
            f"[12:00:02] [Server thread/INFO]: Dim {i} : Mean tick time: 50.0 ms. "
            f"Mean TPS: {tps:.3f}"
            for i, tps in enumerate(dimensions)
        ]


@pytest.fixture
def game_log():
    return GameLog
