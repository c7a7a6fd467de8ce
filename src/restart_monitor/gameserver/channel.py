"""Console channel to a game server running inside a GNU screen session."""

import asyncio
import re
from collections import deque
from pathlib import Path
from typing import List, Tuple, Union

import structlog

from .exceptions import ChannelError, SessionNotAttachedError

logger = structlog.get_logger(__name__)


class ScreenChannel:
    """Sends console commands through ``screen`` and reads replies from the log.

    The game server writes command output to its log file, so a reply is
    collected by waiting briefly and reading the tail of the log.
    """

    def __init__(
        self,
        session: str,
        log_path: Union[str, Path],
        screen_binary: str = "screen",
    ):
        self.session = session
        self.log_path = Path(log_path)
        self.screen_binary = screen_binary
        self._session_pattern = re.compile(rf"\.{re.escape(session)}\s")

    async def _run_screen(self, *args: str) -> Tuple[int, str]:
        try:
            process = await asyncio.create_subprocess_exec(
                self.screen_binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ChannelError(
                f"Cannot run {self.screen_binary}: {e}",
                suggestion="Install GNU screen or fix PATH for the monitor service",
            )

        stdout, _ = await process.communicate()
        return process.returncode, stdout.decode("utf-8", errors="replace")

    async def is_attached(self) -> bool:
        """Whether the named screen session currently exists."""
        try:
            # screen -list exits non-zero when no sessions exist at all
            _, output = await self._run_screen("-list")
        except ChannelError as e:
            logger.warning("Cannot list screen sessions", error=e.message)
            return False

        return any(
            self._session_pattern.search(line + "\n") for line in output.splitlines()
        )

    async def send(self, command: str) -> None:
        """Type one command line into the server console.

        Raises:
            SessionNotAttachedError: If the screen session does not exist
            ChannelError: If the screen call fails
        """
        if not await self.is_attached():
            raise SessionNotAttachedError(self.session)

        returncode, output = await self._run_screen(
            "-S", self.session, "-p", "0", "-X", "stuff", f"{command}\r"
        )
        if returncode != 0:
            raise ChannelError(
                f"screen refused command for session '{self.session}'",
                details={"command": command, "returncode": returncode, "output": output.strip()},
            )

        logger.debug("Sent console command", session=self.session, command=command)

    async def say(self, message: str) -> None:
        """Broadcast a chat message to every online player."""
        await self.send(f"say {message}")

    def recent_output(self, max_lines: int) -> List[str]:
        """Last ``max_lines`` lines of the server log, empty if unreadable."""
        try:
            with open(self.log_path, "r", encoding="utf-8", errors="replace") as f:
                return [line.rstrip("\n") for line in deque(f, maxlen=max_lines)]
        except OSError as e:
            logger.warning(
                "Cannot read server log", path=str(self.log_path), error=str(e)
            )
            return []
