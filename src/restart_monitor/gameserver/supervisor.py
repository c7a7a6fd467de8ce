"""Restart requests handed to the systemd unit managing the game server."""

import asyncio
from typing import List

import structlog

from .exceptions import RestartFailedError

logger = structlog.get_logger(__name__)


class SystemdSupervisor:
    """Restarts the game server unit through ``systemctl``."""

    def __init__(self, service_name: str, use_sudo: bool = True):
        self.service_name = service_name
        self.use_sudo = use_sudo

    @property
    def unit(self) -> str:
        if self.service_name.endswith(".service"):
            return self.service_name
        return f"{self.service_name}.service"

    def build_command(self) -> List[str]:
        command = ["systemctl", "restart", self.unit]
        if self.use_sudo:
            # -n: fail instead of prompting when the sudoers grant is missing
            command = ["sudo", "-n"] + command
        return command

    async def restart(self) -> None:
        """Request a restart of the unit.

        Raises:
            RestartFailedError: If systemctl cannot be run or exits non-zero
        """
        command = self.build_command()
        logger.info("Requesting unit restart", unit=self.unit, command=" ".join(command))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise RestartFailedError(self.unit, None, str(e))

        stdout, _ = await process.communicate()
        if process.returncode != 0:
            raise RestartFailedError(
                self.unit,
                process.returncode,
                stdout.decode("utf-8", errors="replace").strip(),
            )

        logger.info("Unit restart requested", unit=self.unit)
