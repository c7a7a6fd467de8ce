"""Tests for the restart countdown sequence."""

import pytest

from restart_monitor.gameserver.exceptions import RestartFailedError
from restart_monitor.monitoring.cooldown import CooldownScope
from restart_monitor.monitoring.sequencer import (
    PERFORMANCE_CHECKPOINTS,
    VOTE_CHECKPOINTS,
    TriggerType,
    build_schedule,
)
from restart_monitor.storage.state_store import LAST_ANY_RESTART, LAST_TPS_RESTART, LAST_VOTE_RESTART


def test_build_schedule_pauses_until_next_checkpoint():
    assert build_schedule([30, 20, 10, 5, 4, 3, 2, 1]) == [
        (30, 10), (20, 10), (10, 5), (5, 1), (4, 1), (3, 1), (2, 1), (1, 1)
    ]


@pytest.mark.parametrize(
    "checkpoints,total", [(VOTE_CHECKPOINTS, 30), (PERFORMANCE_CHECKPOINTS, 180)]
)
def test_schedule_totals(checkpoints, total):
    assert sum(pause for _, pause in build_schedule(checkpoints)) == total


def test_trigger_scopes():
    assert TriggerType.VOTE.scope is CooldownScope.VOTE
    assert TriggerType.PERFORMANCE.scope is CooldownScope.PERFORMANCE


class TestRestartSequencer:
    @pytest.mark.asyncio
    async def test_vote_countdown(self, sequencer, channel, supervisor, clock, store):
        start = clock.now()

        await sequencer.run(TriggerType.VOTE)

        assert channel.said == [
            "§c§l30 seconds...§r",
            "§c§l20 seconds...§r",
            "§c§l10 seconds...§r",
            "§c§l5...§r",
            "§c§l4...§r",
            "§c§l3...§r",
            "§c§l2...§r",
            "§c§l1...§r",
        ]
        assert clock.sleeps == [10, 10, 5, 1, 1, 1, 1, 1]
        assert supervisor.restarts == 1
        assert supervisor.restart_times == [start + 30]
        assert store.get_timestamp(LAST_VOTE_RESTART) == int(start + 30)
        assert store.get_timestamp(LAST_ANY_RESTART) == int(start + 30)

    @pytest.mark.asyncio
    async def test_performance_countdown(self, sequencer, channel, supervisor, clock, store):
        start = clock.now()

        await sequencer.run(TriggerType.PERFORMANCE, reading=17.25)

        assert channel.said[0] == (
            "§c§l[AUTO-RESTART]§r TPS critically low (17.25). Auto-restart in §e§l3 minutes§r"
        )
        assert channel.said[1] == "§c§l[AUTO-RESTART]§r Restarting in §e§l1 minute§r"
        assert channel.said[2:5] == [
            "§c§l[AUTO-RESTART]§r §e§l30 seconds§r...",
            "§c§l[AUTO-RESTART]§r §e§l20 seconds§r...",
            "§c§l[AUTO-RESTART]§r §e§l10 seconds§r...",
        ]
        assert len(channel.said) == 10
        assert clock.sleeps == [120, 30, 10, 10, 5, 1, 1, 1, 1, 1]
        assert supervisor.restart_times == [start + 180]
        assert store.get_timestamp(LAST_TPS_RESTART) == int(start + 180)
        assert store.get_timestamp(LAST_VOTE_RESTART) is None

    @pytest.mark.asyncio
    async def test_failed_restart_raises_after_commit(self, sequencer, supervisor, store):
        supervisor.fail = True

        with pytest.raises(RestartFailedError):
            await sequencer.run(TriggerType.VOTE)

        assert supervisor.restarts == 1
        assert store.get_timestamp(LAST_VOTE_RESTART) is not None

    @pytest.mark.asyncio
    async def test_lost_announcement_does_not_stop_restart(self, sequencer, channel, supervisor):
        channel.attached = False

        await sequencer.run(TriggerType.VOTE)

        assert channel.said == []
        assert supervisor.restarts == 1
