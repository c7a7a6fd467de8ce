"""Player restart votes: ballot bookkeeping and quorum decisions."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List

import structlog

from ..config.settings import MonitorSettings
from ..gameserver.channel import ScreenChannel
from ..gameserver.log_cursor import LogCursor
from ..gameserver.parsing import extract_voters, latest_player_count
from ..storage.state_store import StateStore, VoteBallot
from . import messages
from .clock import Clock
from .cooldown import CooldownCoordinator, CooldownScope
from .sequencer import RestartSequencer, TriggerType

logger = structlog.get_logger(__name__)

PLAYER_COUNT_WINDOW = 20


def calculate_quorum(online: int, percentage: int, min_votes: int) -> int:
    """Votes needed to restart, rounding half up and never below ``min_votes``."""
    if online <= 0:
        return min_votes
    needed = math.floor(online * percentage / 100 + 0.5)
    return max(min_votes, needed)


class VoteOutcome(Enum):
    """Result of one vote scan."""

    NO_VOTES = "no_votes"
    ACCUMULATING = "accumulating"
    BLOCKED_VOTE_COOLDOWN = "blocked_vote_cooldown"
    BLOCKED_GLOBAL_COOLDOWN = "blocked_global_cooldown"
    RESTARTED = "restarted"


@dataclass
class VoteScanResult:
    """What a scan observed and decided."""

    outcome: VoteOutcome
    new_voters: List[str] = field(default_factory=list)
    tally: int = 0
    quorum: int = 0
    online: int = 0
    announced: bool = False
    cooldown_remaining: int = 0


class VoteTallyEngine:
    """Collects ``!restart`` votes from the log and restarts on quorum."""

    def __init__(
        self,
        settings: MonitorSettings,
        channel: ScreenChannel,
        log_cursor: LogCursor,
        store: StateStore,
        cooldowns: CooldownCoordinator,
        sequencer: RestartSequencer,
        clock: Clock,
    ):
        self.settings = settings
        self.channel = channel
        self.log_cursor = log_cursor
        self.store = store
        self.cooldowns = cooldowns
        self.sequencer = sequencer
        self.clock = clock

    async def query_online_players(self) -> int:
        """Ask the server for its player count, 0 if the reply is not found."""
        await self.channel.send(self.settings.server.player_list_command)
        await self.clock.sleep(self.settings.monitor.settle_delay)

        online = latest_player_count(self.channel.recent_output(PLAYER_COUNT_WINDOW))
        if online is None:
            logger.warning("Could not parse online player count, assuming 0")
            return 0
        return online

    def _open_ballot(self, now: int) -> tuple[VoteBallot, set]:
        ballot = self.store.load_ballot()
        if ballot is None:
            return VoteBallot(created_at=now), set()

        if ballot.is_expired(now, self.settings.vote.expiry):
            logger.info(
                "Vote ballot expired",
                age=ballot.age(now),
                voters=sorted(ballot.voters),
            )
            self.store.clear_ballot()
            return VoteBallot(created_at=now), set()

        return ballot, self.store.load_acknowledged()

    async def scan(self) -> VoteScanResult:
        """Process log lines written since the previous scan."""
        cursor = self.store.get_vote_cursor() or 0
        lines, new_cursor = self.log_cursor.new_lines_since(cursor)
        self.store.set_vote_cursor(new_cursor)

        voters = extract_voters(lines)
        if not voters:
            return VoteScanResult(outcome=VoteOutcome.NO_VOTES)

        vote = self.settings.vote
        online = await self.query_online_players()
        quorum = calculate_quorum(online, vote.percentage, vote.min_votes)

        now = int(self.clock.now())
        ballot, acknowledged = self._open_ballot(now)
        ballot.merge(voters)
        self.store.save_ballot(ballot)

        result = VoteScanResult(
            outcome=VoteOutcome.ACCUMULATING,
            new_voters=sorted(set(voters) - acknowledged),
            tally=ballot.tally,
            quorum=quorum,
            online=online,
        )

        if result.new_voters:
            logger.info(
                "Restart votes received",
                voters=result.new_voters,
                tally=ballot.tally,
                quorum=quorum,
                online=online,
            )
            await self.channel.say(
                messages.vote_tally(ballot.tally, quorum, vote.percentage, online)
            )
            self.store.save_acknowledged(acknowledged | set(result.new_voters))
            result.announced = True
        else:
            logger.debug("Duplicate votes ignored", voters=voters, tally=ballot.tally)

        if ballot.tally < quorum:
            return result

        vote_remaining = self.cooldowns.remaining(CooldownScope.VOTE, vote.cooldown)
        if vote_remaining > 0:
            logger.warning(
                "Vote restart blocked by vote cooldown", remaining=vote_remaining
            )
            self.store.clear_ballot()
            result.outcome = VoteOutcome.BLOCKED_VOTE_COOLDOWN
            result.cooldown_remaining = vote_remaining
            return result

        global_remaining = self.cooldowns.remaining(CooldownScope.GLOBAL)
        if global_remaining > 0:
            logger.warning(
                "Vote restart blocked by global cooldown", remaining=global_remaining
            )
            await self.channel.say(messages.vote_blocked(global_remaining))
            self.store.clear_ballot()
            result.outcome = VoteOutcome.BLOCKED_GLOBAL_COOLDOWN
            result.cooldown_remaining = global_remaining
            return result

        logger.info("Vote passed", tally=ballot.tally, quorum=quorum)
        await self.channel.say(messages.vote_passed(ballot.tally, quorum))
        self.store.clear_ballot()

        await self.sequencer.run(TriggerType.VOTE)

        # The restarted server starts a fresh log
        self.store.set_vote_cursor(0)
        result.outcome = VoteOutcome.RESTARTED
        return result
