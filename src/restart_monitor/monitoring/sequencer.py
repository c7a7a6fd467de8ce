"""Countdown announcements followed by the hand-off to the supervisor."""

from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from ..config.logging import log_restart_event
from ..gameserver.channel import ScreenChannel
from ..gameserver.exceptions import ChannelError, RestartFailedError
from ..gameserver.supervisor import SystemdSupervisor
from . import messages
from .clock import Clock
from .cooldown import CooldownCoordinator, CooldownScope

logger = structlog.get_logger(__name__)


class TriggerType(Enum):
    """What caused a restart."""

    VOTE = "vote"
    PERFORMANCE = "performance"

    @property
    def scope(self) -> CooldownScope:
        return _TRIGGER_SCOPES[self]


_TRIGGER_SCOPES = {
    TriggerType.VOTE: CooldownScope.VOTE,
    TriggerType.PERFORMANCE: CooldownScope.PERFORMANCE,
}

# Seconds before restart at which players are warned
VOTE_CHECKPOINTS = [30, 20, 10, 5, 4, 3, 2, 1]
PERFORMANCE_CHECKPOINTS = [180, 60, 30, 20, 10, 5, 4, 3, 2, 1]

CHECKPOINTS: Dict[TriggerType, List[int]] = {
    TriggerType.VOTE: VOTE_CHECKPOINTS,
    TriggerType.PERFORMANCE: PERFORMANCE_CHECKPOINTS,
}


def build_schedule(checkpoints: List[int]) -> List[Tuple[int, int]]:
    """Pair each checkpoint with the sleep that follows it.

    The sleep is the distance to the next checkpoint, and to zero after the
    last one, so the schedule lasts exactly as long as its first checkpoint.
    """
    following = checkpoints[1:] + [0]
    return [(point, point - after) for point, after in zip(checkpoints, following)]


class RestartSequencer:
    """Runs the countdown for a trigger and then restarts the server unit."""

    def __init__(
        self,
        channel: ScreenChannel,
        supervisor: SystemdSupervisor,
        cooldowns: CooldownCoordinator,
        clock: Clock,
    ):
        self.channel = channel
        self.supervisor = supervisor
        self.cooldowns = cooldowns
        self.clock = clock

    def _formatter(
        self, trigger: TriggerType, reading: Optional[float]
    ) -> Callable[[int], str]:
        if trigger is TriggerType.PERFORMANCE:
            value = 0.0 if reading is None else reading
            return lambda seconds: messages.performance_countdown(seconds, value)
        return messages.vote_countdown

    async def _announce(self, message: str) -> None:
        # A lost announcement must not stop a restart that is already decided
        try:
            await self.channel.say(message)
        except ChannelError as e:
            logger.warning("Countdown announcement failed", error=e.message)

    async def run(self, trigger: TriggerType, reading: Optional[float] = None) -> None:
        """Count down, record the restart and ask the supervisor to restart.

        Raises:
            RestartFailedError: If the supervisor call fails; never retried
        """
        log_restart_event(logger, trigger.value, "countdown_started", reading=reading)

        format_message = self._formatter(trigger, reading)
        for seconds, pause in build_schedule(CHECKPOINTS[trigger]):
            await self._announce(format_message(seconds))
            await self.clock.sleep(pause)

        self.cooldowns.commit(trigger.scope)

        try:
            await self.supervisor.restart()
        except RestartFailedError as e:
            log_restart_event(
                logger,
                trigger.value,
                "failed",
                unit=e.unit,
                returncode=e.returncode,
                output=e.details.get("output"),
            )
            raise

        log_restart_event(logger, trigger.value, "triggered", reading=reading)
