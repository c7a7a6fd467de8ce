"""Tests for TPS sampling cycles."""

import pytest

from restart_monitor.monitoring.cooldown import CooldownScope
from restart_monitor.monitoring.performance import PerformanceSampler


@pytest.fixture
def sampler(settings, channel, cooldowns, sequencer, clock):
    return PerformanceSampler(settings, channel, cooldowns, sequencer, clock)


@pytest.fixture
def readings(channel, game_log):
    def queue(*values):
        channel.respond("forge tps", *[game_log.tps_report(20.0, value) for value in values])

    return queue


class TestSample:
    @pytest.mark.asyncio
    async def test_sample_takes_worst_dimension(self, sampler, channel, game_log, clock):
        channel.respond("forge tps", game_log.tps_report(19.9, 20.0, 17.3))

        assert await sampler.sample() == pytest.approx(17.3)
        assert channel.sent == ["forge tps"]
        assert clock.sleeps == [2.0]

    @pytest.mark.asyncio
    async def test_sample_without_output_is_healthy(self, sampler):
        assert await sampler.sample() == 20.0


class TestRunCycle:
    @pytest.mark.asyncio
    async def test_healthy_cycle(self, sampler, readings, clock, supervisor):
        readings(20.0)

        result = await sampler.run_cycle()

        assert result.readings == [20.0] * 7
        assert result.bad_samples == 0
        assert not result.verdict_bad
        assert not result.restart_triggered
        assert supervisor.restarts == 0
        # settle delay per sample, sample delay between samples only
        assert clock.sleeps == [2.0, 1.0] * 6 + [2.0]

    @pytest.mark.asyncio
    async def test_four_bad_samples_do_not_trigger(self, sampler, readings, supervisor):
        readings(18.0, 18.0, 18.0, 18.0, 19.0, 19.5, 20.0)

        result = await sampler.run_cycle()

        assert result.bad_samples == 4
        assert not result.verdict_bad
        assert supervisor.restarts == 0

    @pytest.mark.asyncio
    async def test_five_bad_samples_trigger_restart(self, sampler, readings, supervisor, channel, store):
        readings(18.0, 18.5, 18.9, 20.0, 17.0, 18.0, 19.5)

        result = await sampler.run_cycle()

        assert result.bad_samples == 5
        assert result.verdict_bad
        assert result.restart_triggered
        assert not result.blocked
        assert result.mean_reading == pytest.approx(18.557, abs=1e-3)
        assert supervisor.restarts == 1
        assert "TPS critically low (18.56)" in channel.said[0]

    @pytest.mark.asyncio
    async def test_bad_verdict_blocked_by_own_cooldown(self, sampler, readings, supervisor, cooldowns, clock, channel):
        cooldowns.commit(CooldownScope.PERFORMANCE, now=clock.now() - 1800)
        readings(15.0)

        result = await sampler.run_cycle()

        assert result.verdict_bad
        assert result.blocked
        assert not result.restart_triggered
        assert result.cooldown_remaining > 0
        assert supervisor.restarts == 0
        assert channel.said == []

    @pytest.mark.asyncio
    async def test_recent_vote_restart_blocks_performance_restart(self, sampler, readings, supervisor, cooldowns, clock, store):
        from restart_monitor.storage.state_store import LAST_TPS_RESTART

        store.set_timestamp(LAST_TPS_RESTART, clock.now() - 20_000)
        cooldowns.commit(CooldownScope.VOTE, now=clock.now() - 300)
        readings(15.0)

        result = await sampler.run_cycle()

        assert result.blocked
        assert supervisor.restarts == 0

    @pytest.mark.asyncio
    async def test_expired_cooldown_allows_restart(self, sampler, readings, supervisor, cooldowns, clock):
        cooldowns.commit(CooldownScope.PERFORMANCE, now=clock.now() - 3600)
        readings(15.0)

        result = await sampler.run_cycle()

        assert result.restart_triggered
        assert supervisor.restarts == 1
