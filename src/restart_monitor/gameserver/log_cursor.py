"""Incremental reader over the append-only game server log."""

from pathlib import Path
from typing import List, Tuple, Union

import structlog

from .exceptions import LogUnavailableError

logger = structlog.get_logger(__name__)


class LogCursor:
    """Reads lines appended to the log since a persisted line offset.

    The log is rotated when the server restarts. A line count that drops
    below the stored offset is treated as a rotation and reading starts
    again from the first line.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_lines(self) -> List[str]:
        """Complete lines only; a tail still being written waits for its newline."""
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace", newline="") as f:
                content = f.read()
        except OSError as e:
            raise LogUnavailableError(str(self.path), e.strerror or str(e))

        lines = content.split("\n")[:-1]
        return [line[:-1] if line.endswith("\r") else line for line in lines]

    def line_count(self) -> int:
        """Current number of complete lines in the log."""
        return len(self._read_lines())

    def new_lines_since(self, cursor: int) -> Tuple[List[str], int]:
        """Return the lines after ``cursor`` and the offset to persist next.

        Raises:
            LogUnavailableError: If the log cannot be read
        """
        lines = self._read_lines()
        total = len(lines)

        if cursor < 0 or total < cursor:
            logger.info(
                "Server log rotated, rescanning from the start",
                path=str(self.path),
                cursor=cursor,
                lines=total,
            )
            cursor = 0

        return lines[cursor:], total
