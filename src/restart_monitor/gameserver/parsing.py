"""Pure parsing functions for lines of the game server log.

Each function maps one line (or a window of lines) to an optional value and
never touches the log file itself.
"""

import re
from typing import Iterable, List, Optional

# Only a line that starts with the server chat prefix is a vote
VOTE_PATTERN = re.compile(
    r"^\[[^\]]*\] \[Server thread/INFO\]: <(?P<name>[^>]+)> !(?:vote ?restart|restart)\b"
)
PLAYER_COUNT_PATTERN = re.compile(r"There are (?P<online>\d+)(?:/\d+| of a max)?")
MEAN_TPS_PATTERN = re.compile(r"Mean TPS:\s*(?P<tps>\d+(?:\.\d+)?)")
SERVER_READY_PATTERN = re.compile(r"\bDone\b")


def parse_vote(line: str) -> Optional[str]:
    """Return the voter name if the line is a restart-vote chat command."""
    match = VOTE_PATTERN.search(line)
    if match is None:
        return None
    return match.group("name").strip() or None


def extract_voters(lines: Iterable[str]) -> List[str]:
    """Unique voter names in the lines, sorted for stable output."""
    voters = {voter for voter in map(parse_vote, lines) if voter}
    return sorted(voters)


def parse_player_count(line: str) -> Optional[int]:
    """Online player count from a ``There are N/M players online`` line."""
    match = PLAYER_COUNT_PATTERN.search(line)
    if match is None:
        return None
    return int(match.group("online"))


def latest_player_count(lines: Iterable[str]) -> Optional[int]:
    """The most recent player count reported in a window of lines."""
    count = None
    for line in lines:
        parsed = parse_player_count(line)
        if parsed is not None:
            count = parsed
    return count


def parse_mean_tps(line: str) -> Optional[float]:
    """Mean TPS value reported for one dimension, if the line carries one."""
    match = MEAN_TPS_PATTERN.search(line)
    if match is None:
        return None
    return float(match.group("tps"))


def worst_tps(lines: Iterable[str]) -> Optional[float]:
    """Lowest Mean TPS across every dimension reported in the window."""
    readings = [tps for tps in map(parse_mean_tps, lines) if tps is not None]
    if not readings:
        return None
    return min(readings)


def is_server_ready(lines: Iterable[str]) -> bool:
    """Whether the startup ``Done (...)!`` line appears in the window."""
    return any(SERVER_READY_PATTERN.search(line) for line in lines)
