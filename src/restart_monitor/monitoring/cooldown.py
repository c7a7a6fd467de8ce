"""Cooldown arbitration between the vote and performance restart triggers."""

from enum import Enum
from typing import Optional

import structlog

from ..storage.state_store import (
    LAST_ANY_RESTART,
    LAST_TPS_RESTART,
    LAST_VOTE_RESTART,
    StateStore,
)
from .clock import Clock

logger = structlog.get_logger(__name__)


class CooldownScope(Enum):
    """Restart scopes, each backed by its own timestamp record."""

    GLOBAL = LAST_ANY_RESTART
    VOTE = LAST_VOTE_RESTART
    PERFORMANCE = LAST_TPS_RESTART


class CooldownCoordinator:
    """Decides whether enough time has passed since the last restart.

    Every restart updates the global record in addition to its own scope,
    so a vote restart also holds back a performance restart and vice versa.
    """

    def __init__(self, store: StateStore, global_period: int, clock: Clock):
        self.store = store
        self.global_period = global_period
        self.clock = clock

    def last_restart(self, scope: CooldownScope) -> Optional[int]:
        return self.store.get_timestamp(scope.value)

    def remaining(
        self, scope: CooldownScope, override_period: Optional[int] = None
    ) -> int:
        """Seconds left before ``scope`` may restart again, 0 if it may now."""
        last = self.last_restart(scope)
        if last is None:
            return 0

        period = self.global_period if override_period is None else override_period
        elapsed = int(self.clock.now()) - last
        return max(0, period - elapsed)

    def may_restart(
        self, scope: CooldownScope, override_period: Optional[int] = None
    ) -> bool:
        return self.remaining(scope, override_period) == 0

    def blocking_remaining(self, scope: CooldownScope, period: int) -> int:
        """Wait for ``scope`` when the global record is also held to ``period``."""
        return max(
            self.remaining(scope, period),
            self.remaining(CooldownScope.GLOBAL, period),
        )

    def commit(self, scope: CooldownScope, now: Optional[float] = None) -> None:
        """Record a restart of ``scope`` and of the global scope."""
        timestamp = int(self.clock.now() if now is None else now)
        self.store.set_timestamp(scope.value, timestamp)
        if scope is not CooldownScope.GLOBAL:
            self.store.set_timestamp(CooldownScope.GLOBAL.value, timestamp)
        logger.info("Restart recorded", scope=scope.name.lower(), timestamp=timestamp)
