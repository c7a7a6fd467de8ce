"""File-backed state that survives restarts of the monitor itself.

Every record is a small plain-text file in the state directory holding one
logical value. Deleting a file resets that record. Writes go to a temporary
file in the same directory which then replaces the record, so a crash never
leaves a half-written value behind.
"""

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Union

import structlog

from ..gameserver.exceptions import MonitorError

logger = structlog.get_logger(__name__)

LAST_ANY_RESTART = "last_any_restart"
LAST_VOTE_RESTART = "last_vote_restart"
LAST_TPS_RESTART = "last_tps_restart"
CURRENT_VOTES = "current_votes"
ACKNOWLEDGED_VOTERS = "acknowledged_voters"
LAST_VOTE_LINE = "last_vote_line"
LAST_TPS_CYCLE = "last_tps_cycle"

ALL_RECORDS = [
    LAST_ANY_RESTART,
    LAST_VOTE_RESTART,
    LAST_TPS_RESTART,
    CURRENT_VOTES,
    ACKNOWLEDGED_VOTERS,
    LAST_VOTE_LINE,
    LAST_TPS_CYCLE,
]

# Record groups addressable from the ``reset`` command
RECORD_GROUPS: Dict[str, List[str]] = {
    "cooldowns": [LAST_ANY_RESTART, LAST_VOTE_RESTART, LAST_TPS_RESTART],
    "votes": [CURRENT_VOTES, ACKNOWLEDGED_VOTERS],
    "cursor": [LAST_VOTE_LINE],
    "cycle": [LAST_TPS_CYCLE],
    "all": ALL_RECORDS,
}


class StateStoreError(MonitorError):
    """A state record could not be read or written."""


@dataclass
class VoteBallot:
    """Unique voters collected since the ballot was opened."""

    created_at: int
    voters: Set[str] = field(default_factory=set)

    @property
    def tally(self) -> int:
        return len(self.voters)

    def age(self, now: int) -> int:
        return now - self.created_at

    def is_expired(self, now: int, expiry: int) -> bool:
        return self.age(now) > expiry

    def merge(self, voters: Iterable[str]) -> Set[str]:
        """Add voters and return the ones that were not on the ballot yet."""
        added = set(voters) - self.voters
        self.voters |= added
        return added


class StateStore:
    """Typed accessors over the monitor's state directory."""

    def __init__(self, state_dir: Union[str, Path]):
        self.state_dir = Path(state_dir)

    def _path(self, record: str) -> Path:
        return self.state_dir / record

    def _read(self, record: str) -> Optional[str]:
        try:
            return self._path(record).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateStoreError(
                f"Cannot read state record {record}: {e}",
                details={"path": str(self._path(record))},
            )

    def _write(self, record: str, content: str) -> None:
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.state_dir, prefix=f".{record}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp_name, self._path(record))
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StateStoreError(
                f"Cannot write state record {record}: {e}",
                suggestion="Check that the monitor user owns the state directory",
                details={"path": str(self._path(record))},
            )

    def _read_int(self, record: str) -> Optional[int]:
        content = self._read(record)
        if content is None or not content.strip():
            return None
        try:
            return int(float(content.strip()))
        except ValueError:
            logger.warning("Ignoring corrupt state record", record=record, value=content.strip())
            return None

    def _write_int(self, record: str, value: int) -> None:
        self._write(record, f"{int(value)}\n")

    def get_timestamp(self, record: str) -> Optional[int]:
        """Unix timestamp stored in a cooldown or cycle record."""
        return self._read_int(record)

    def set_timestamp(self, record: str, timestamp: Union[int, float]) -> None:
        self._write_int(record, int(timestamp))

    def load_ballot(self) -> Optional[VoteBallot]:
        """The open ballot, or None when no vote is in progress."""
        content = self._read(CURRENT_VOTES)
        if content is None:
            return None

        lines = [line.strip() for line in content.splitlines() if line.strip()]
        if not lines:
            return None
        try:
            created_at = int(float(lines[0]))
        except ValueError:
            logger.warning("Ignoring corrupt vote ballot", first_line=lines[0])
            return None

        return VoteBallot(created_at=created_at, voters=set(lines[1:]))

    def save_ballot(self, ballot: VoteBallot) -> None:
        lines = [str(int(ballot.created_at))] + sorted(ballot.voters)
        self._write(CURRENT_VOTES, "\n".join(lines) + "\n")

    def load_acknowledged(self) -> Set[str]:
        content = self._read(ACKNOWLEDGED_VOTERS)
        if content is None:
            return set()
        return {line.strip() for line in content.splitlines() if line.strip()}

    def save_acknowledged(self, voters: Iterable[str]) -> None:
        names = sorted(set(voters))
        self._write(ACKNOWLEDGED_VOTERS, "".join(f"{name}\n" for name in names))

    def clear_ballot(self) -> None:
        """Discard the ballot together with its acknowledgements."""
        self.clear([CURRENT_VOTES, ACKNOWLEDGED_VOTERS])

    def get_vote_cursor(self) -> Optional[int]:
        return self._read_int(LAST_VOTE_LINE)

    def set_vote_cursor(self, line: int) -> None:
        self._write_int(LAST_VOTE_LINE, line)

    def get_last_cycle(self) -> Optional[int]:
        return self._read_int(LAST_TPS_CYCLE)

    def set_last_cycle(self, timestamp: Union[int, float]) -> None:
        self._write_int(LAST_TPS_CYCLE, int(timestamp))

    def clear(self, records: Iterable[str]) -> List[str]:
        """Delete records, returning the names that existed."""
        removed = []
        for record in records:
            if record not in ALL_RECORDS:
                raise StateStoreError(f"Unknown state record: {record}")
            try:
                self._path(record).unlink()
                removed.append(record)
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StateStoreError(f"Cannot delete state record {record}: {e}")
        return removed

    def snapshot(self) -> Dict[str, Any]:
        """All records in a serializable form, for status output."""
        ballot = self.load_ballot()
        return {
            LAST_ANY_RESTART: self.get_timestamp(LAST_ANY_RESTART),
            LAST_VOTE_RESTART: self.get_timestamp(LAST_VOTE_RESTART),
            LAST_TPS_RESTART: self.get_timestamp(LAST_TPS_RESTART),
            CURRENT_VOTES: (
                {"created_at": ballot.created_at, "voters": sorted(ballot.voters)}
                if ballot
                else None
            ),
            ACKNOWLEDGED_VOTERS: sorted(self.load_acknowledged()),
            LAST_VOTE_LINE: self.get_vote_cursor(),
            LAST_TPS_CYCLE: self.get_last_cycle(),
        }
