"""Tests for the systemd restart call."""

from unittest.mock import AsyncMock, Mock, patch

import pytest

from restart_monitor.gameserver.exceptions import RestartFailedError
from restart_monitor.gameserver.supervisor import SystemdSupervisor


def make_process(output: bytes = b"", returncode: int = 0):
    process = Mock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(output, None))
    return process


def test_command_with_sudo():
    assert SystemdSupervisor("gtnh").build_command() == [
        "sudo", "-n", "systemctl", "restart", "gtnh.service"
    ]


def test_command_without_sudo():
    supervisor = SystemdSupervisor("gtnh.service", use_sudo=False)
    assert supervisor.build_command() == ["systemctl", "restart", "gtnh.service"]


@pytest.mark.asyncio
async def test_restart_success():
    with patch(
        "asyncio.create_subprocess_exec", AsyncMock(return_value=make_process())
    ) as exec_mock:
        await SystemdSupervisor("gtnh").restart()

    exec_mock.assert_awaited_once()
    assert exec_mock.call_args.args == ("sudo", "-n", "systemctl", "restart", "gtnh.service")


@pytest.mark.asyncio
async def test_restart_nonzero_exit():
    process = make_process(b"sudo: a password is required\n", returncode=1)

    with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
        with pytest.raises(RestartFailedError) as exc_info:
            await SystemdSupervisor("gtnh").restart()

    error = exc_info.value
    assert error.unit == "gtnh.service"
    assert error.returncode == 1
    assert error.details["output"] == "sudo: a password is required"
    assert error.suggestion


@pytest.mark.asyncio
async def test_restart_binary_missing():
    with patch(
        "asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("sudo"))
    ):
        with pytest.raises(RestartFailedError) as exc_info:
            await SystemdSupervisor("gtnh").restart()

    assert exc_info.value.returncode is None
