"""Periodic TPS sampling and the restart decision it feeds."""

from dataclasses import dataclass, field
from typing import List, Optional

import structlog

from ..config.settings import MonitorSettings
from ..gameserver.channel import ScreenChannel
from ..gameserver.parsing import worst_tps
from .clock import Clock
from .cooldown import CooldownCoordinator, CooldownScope
from .sequencer import RestartSequencer, TriggerType

logger = structlog.get_logger(__name__)

TPS_WINDOW = 50
HEALTHY_TPS = 20.0


@dataclass
class CycleResult:
    """Readings and verdict of one sampling cycle."""

    readings: List[float] = field(default_factory=list)
    bad_samples: int = 0
    verdict_bad: bool = False
    restart_triggered: bool = False
    blocked: bool = False
    cooldown_remaining: int = 0

    @property
    def mean_reading(self) -> Optional[float]:
        if not self.readings:
            return None
        return sum(self.readings) / len(self.readings)


class PerformanceSampler:
    """Samples server TPS several times per cycle and restarts on a bad verdict."""

    def __init__(
        self,
        settings: MonitorSettings,
        channel: ScreenChannel,
        cooldowns: CooldownCoordinator,
        sequencer: RestartSequencer,
        clock: Clock,
    ):
        self.settings = settings
        self.channel = channel
        self.cooldowns = cooldowns
        self.sequencer = sequencer
        self.clock = clock

    async def sample(self) -> float:
        """Worst Mean TPS across dimensions, the healthy ceiling if none parsed."""
        await self.channel.send(self.settings.performance.query_command)
        await self.clock.sleep(self.settings.monitor.settle_delay)

        reading = worst_tps(self.channel.recent_output(TPS_WINDOW))
        if reading is None:
            logger.warning("No TPS reading found in server log, assuming healthy")
            return HEALTHY_TPS
        return reading

    def cooldown_remaining(self) -> int:
        """Seconds until a performance restart is allowed.

        Both the performance record and the global record are measured
        against the performance period.
        """
        return self.cooldowns.blocking_remaining(
            CooldownScope.PERFORMANCE, self.settings.performance.cooldown
        )

    async def run_cycle(self) -> CycleResult:
        """Take one cycle of samples and act on the verdict."""
        perf = self.settings.performance
        result = CycleResult()

        for i in range(perf.samples_per_cycle):
            reading = await self.sample()
            result.readings.append(reading)
            low = reading < perf.threshold
            if low:
                result.bad_samples += 1
            logger.debug(
                "TPS sample",
                sample=i + 1,
                of=perf.samples_per_cycle,
                reading=reading,
                low=low,
            )
            if i < perf.samples_per_cycle - 1:
                await self.clock.sleep(perf.sample_delay)

        result.verdict_bad = result.bad_samples >= perf.required_bad_samples
        logger.info(
            "TPS check cycle complete",
            bad_samples=result.bad_samples,
            samples=perf.samples_per_cycle,
            required=perf.required_bad_samples,
            readings=result.readings,
        )

        if not result.verdict_bad:
            return result

        mean = result.mean_reading
        remaining = self.cooldown_remaining()
        if remaining > 0:
            logger.warning(
                "TPS restart needed but blocked by cooldown",
                mean_reading=round(mean, 2),
                remaining=remaining,
            )
            result.blocked = True
            result.cooldown_remaining = remaining
            return result

        logger.warning("TPS critically low, restarting", mean_reading=round(mean, 2))
        result.restart_triggered = True
        await self.sequencer.run(TriggerType.PERFORMANCE, reading=mean)
        return result
