"""Main monitoring loop tying vote scans and TPS cycles together."""

import asyncio
import signal
from typing import Any, Awaitable, Callable, Optional

import structlog

from ..config.settings import MonitorSettings
from ..gameserver.channel import ScreenChannel
from ..gameserver.exceptions import LogUnavailableError, MonitorError
from ..gameserver.log_cursor import LogCursor
from ..gameserver.parsing import is_server_ready
from ..gameserver.supervisor import SystemdSupervisor
from ..storage.state_store import StateStore
from .clock import Clock
from .cooldown import CooldownCoordinator
from .performance import PerformanceSampler
from .sequencer import RestartSequencer
from .votes import VoteTallyEngine

logger = structlog.get_logger(__name__)

READY_POLL_INTERVAL = 2
READY_WINDOW = 200


class MonitorLoop:
    """Single cooperative loop running vote scans and TPS cycles on cadence."""

    def __init__(
        self,
        settings: MonitorSettings,
        channel: ScreenChannel,
        log_cursor: LogCursor,
        store: StateStore,
        votes: VoteTallyEngine,
        sampler: PerformanceSampler,
        clock: Clock,
    ):
        self.settings = settings
        self.channel = channel
        self.log_cursor = log_cursor
        self.store = store
        self.votes = votes
        self.sampler = sampler
        self.clock = clock

        self._stop_requested = False
        self._last_vote_scan: Optional[float] = None

    @classmethod
    def from_settings(
        cls, settings: MonitorSettings, clock: Optional[Clock] = None
    ) -> "MonitorLoop":
        """Wire the production collaborators described by ``settings``."""
        clock = clock or Clock()
        log_path = settings.get_server_log_path()

        channel = ScreenChannel(settings.server.screen_session, log_path)
        log_cursor = LogCursor(log_path)
        store = StateStore(settings.get_state_dir())
        cooldowns = CooldownCoordinator(store, settings.cooldown.global_cooldown, clock)
        supervisor = SystemdSupervisor(
            settings.server.service_name, use_sudo=settings.server.use_sudo
        )
        sequencer = RestartSequencer(channel, supervisor, cooldowns, clock)

        votes = VoteTallyEngine(
            settings, channel, log_cursor, store, cooldowns, sequencer, clock
        )
        sampler = PerformanceSampler(settings, channel, cooldowns, sequencer, clock)

        return cls(settings, channel, log_cursor, store, votes, sampler, clock)

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Finish the current tick and leave the loop."""
        if not self._stop_requested:
            logger.info("Shutdown requested")
        self._stop_requested = True

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_stop)

    def log_configuration_summary(self) -> None:
        s = self.settings
        logger.info(
            "Restart monitor starting",
            session=s.server.screen_session,
            service=s.server.service_name,
            log_file=str(s.get_server_log_path()),
            state_dir=str(s.get_state_dir()),
        )
        logger.info(
            "Vote settings",
            percentage=s.vote.percentage,
            min_votes=s.vote.min_votes,
            check_interval=s.vote.check_interval,
            expiry=s.vote.expiry,
            cooldown=s.vote.cooldown,
        )
        logger.info(
            "TPS settings",
            threshold=s.performance.threshold,
            cycle_interval=s.performance.cycle_interval,
            samples=s.performance.samples_per_cycle,
            required_bad=s.performance.required_bad_samples,
            cooldown=s.performance.cooldown,
        )
        logger.info(
            "Global restart cooldown",
            seconds=s.cooldown.global_cooldown,
            minutes=s.cooldown.global_cooldown // 60,
        )

    async def wait_for_server(self) -> bool:
        """Wait until the session exists and the server finished starting.

        Returns False when the startup timeout passes first.
        """
        timeout = self.settings.monitor.startup_timeout
        attempts = max(1, timeout // READY_POLL_INTERVAL)

        for _ in range(attempts):
            if await self.channel.is_attached() and is_server_ready(
                self.channel.recent_output(READY_WINDOW)
            ):
                logger.info("Server is ready")
                return True
            if self._stop_requested:
                return False
            await self.clock.sleep(READY_POLL_INTERVAL)

        logger.warning(
            "Server not ready within startup timeout, monitoring anyway",
            timeout=timeout,
        )
        return False

    def initialize_state(self) -> None:
        """Seed cursor and cycle records so old votes are not replayed."""
        if self.store.get_vote_cursor() is None:
            try:
                line_count = self.log_cursor.line_count()
            except LogUnavailableError as e:
                logger.warning("Server log unavailable, vote scan starts at 0", error=e.message)
                line_count = 0
            self.store.set_vote_cursor(line_count)
            logger.info("Vote tracking initialized", cursor=line_count)

        if self.store.get_last_cycle() is None:
            self.store.set_last_cycle(self.clock.now())
            logger.info("TPS monitoring initialized")

    async def startup(self, wait_for_server: bool = True) -> None:
        self.log_configuration_summary()
        if wait_for_server:
            await self.wait_for_server()
        self.initialize_state()
        self._last_vote_scan = self.clock.now()
        logger.info("All systems ready, starting monitoring loop")

    async def _guarded(self, name: str, operation: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await operation()
        except MonitorError as e:
            logger.error(f"{name} failed", error=e.message, **e.details)
        except Exception as e:
            logger.exception(f"Unexpected error during {name}", error=str(e))
        return None

    def _cycle_due(self, now: float) -> bool:
        try:
            last_cycle = self.store.get_last_cycle()
        except MonitorError as e:
            logger.error("Cannot read TPS cycle record", error=e.message)
            return False
        if last_cycle is None:
            return True
        return now - last_cycle >= self.settings.performance.cycle_interval

    async def tick(self) -> None:
        """One iteration: scan votes and sample TPS when each is due."""
        if not await self.channel.is_attached():
            logger.debug("Screen session not found, waiting", session=self.channel.session)
            await self.clock.sleep(self.settings.monitor.offline_poll_interval)
            return

        if self._last_vote_scan is None:
            self._last_vote_scan = self.clock.now()

        # A scan can include a whole restart countdown
        if self.clock.now() - self._last_vote_scan >= self.settings.vote.check_interval:
            await self._guarded("vote scan", self.votes.scan)
            self._last_vote_scan = self.clock.now()

        if self._cycle_due(self.clock.now()):
            logger.debug("TPS cycle timer triggered")
            await self._guarded("TPS cycle", self.sampler.run_cycle)
            await self._guarded("TPS cycle bookkeeping", self._mark_cycle_complete)

        await self.clock.sleep(self.settings.monitor.tick_interval)

    async def _mark_cycle_complete(self) -> None:
        self.store.set_last_cycle(self.clock.now())

    async def run(self, wait_for_server: bool = True) -> None:
        """Run until ``request_stop`` is called."""
        await self.startup(wait_for_server)
        while not self._stop_requested:
            await self.tick()
        logger.info("Restart monitor stopped")
