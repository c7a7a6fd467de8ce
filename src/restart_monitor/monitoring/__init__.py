"""Restart decision engine: votes, TPS sampling, cooldowns and countdowns."""

from .clock import Clock
from .cooldown import CooldownCoordinator, CooldownScope
from .monitor_loop import MonitorLoop
from .performance import CycleResult, PerformanceSampler
from .sequencer import RestartSequencer, TriggerType
from .votes import VoteOutcome, VoteScanResult, VoteTallyEngine, calculate_quorum

__all__ = [
    "Clock",
    "CooldownCoordinator",
    "CooldownScope",
    "CycleResult",
    "MonitorLoop",
    "PerformanceSampler",
    "RestartSequencer",
    "TriggerType",
    "VoteOutcome",
    "VoteScanResult",
    "VoteTallyEngine",
    "calculate_quorum",
]
