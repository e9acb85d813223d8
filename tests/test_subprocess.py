"""Tests for installer/subprocess.py -- tolerant and strict command runners."""

from __future__ import annotations

import signal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dnf_tap.errors import PackageCommandError
from dnf_tap.installer.subprocess import run_command, run_command_checked
from dnf_tap.models import CommandResult

_EXEC = "dnf_tap.installer.subprocess.asyncio.create_subprocess_exec"


def _finished_proc(returncode: int | None, stdout: bytes = b"", stderr: bytes = b"") -> AsyncMock:
    proc = AsyncMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(stdout, stderr))
    return proc


def _hung_proc(pid: int = 99) -> AsyncMock:
    proc = AsyncMock()
    proc.pid = pid
    proc.communicate = AsyncMock(side_effect=TimeoutError)
    proc.wait = AsyncMock()
    proc.kill = MagicMock()
    return proc


# === Normal execution ========================================================


class TestRunCommandNormal:
    """Tests for successful, non-timeout command execution."""

    async def test_returns_command_result(self):
        with patch(_EXEC, return_value=_finished_proc(0, b"hello", b"")):
            result = await run_command(["echo", "hello"])

        assert result == CommandResult(returncode=0, stdout="hello", stderr="")

    async def test_start_new_session_is_passed(self):
        with patch(_EXEC, return_value=_finished_proc(0)) as mock_exec:
            await run_command(["rpm", "-q", "bash"])

        args, kwargs = mock_exec.call_args
        assert args == ("rpm", "-q", "bash")
        assert kwargs["start_new_session"] is True

    async def test_nonzero_exit_code_returned(self):
        with patch(_EXEC, return_value=_finished_proc(1, b"", b"package nope is not installed")):
            result = await run_command(["rpm", "-q", "nope"])

        assert result.returncode == 1
        assert result.ok is False
        assert "not installed" in result.stderr

    async def test_none_returncode_treated_as_zero(self):
        with patch(_EXEC, return_value=_finished_proc(None, b"ok")):
            result = await run_command(["true"])

        assert result.returncode == 0

    async def test_output_truncated_to_limit(self):
        big_output = b"x" * 5000
        with patch(_EXEC, return_value=_finished_proc(0, big_output, big_output)):
            result = await run_command(["big"])

        assert len(result.stdout) == 2000
        assert len(result.stderr) == 2000

    async def test_env_passed_to_subprocess(self):
        custom_env = {"PATH": "/usr/bin", "LANG": "C"}
        with patch(_EXEC, return_value=_finished_proc(0)) as mock_exec:
            await run_command(["cmd"], env=custom_env)

        _, kwargs = mock_exec.call_args
        assert kwargs["env"] == custom_env

    async def test_decode_errors_replaced(self):
        with patch(_EXEC, return_value=_finished_proc(0, b"hello \xff world")):
            result = await run_command(["cmd"])

        assert "hello" in result.stdout
        assert "\ufffd" in result.stdout


# === Timeout handling ========================================================


class TestRunCommandTimeout:
    """Tests for timeout behavior and process group killing."""

    async def test_timeout_returns_negative_one_with_message(self):
        with (
            patch(_EXEC, return_value=_hung_proc()),
            patch("dnf_tap.installer.subprocess.os.killpg"),
            patch("dnf_tap.installer.subprocess.os.getpgid", return_value=12345),
        ):
            result = await run_command(["slow"], timeout=5.0)

        assert result.returncode == -1
        assert result.stdout == ""
        assert "timed out after 5.0s" in result.stderr

    async def test_timeout_calls_killpg_with_sigkill(self):
        with (
            patch(_EXEC, return_value=_hung_proc()),
            patch("dnf_tap.installer.subprocess.os.killpg") as mock_killpg,
            patch("dnf_tap.installer.subprocess.os.getpgid", return_value=999),
        ):
            await run_command(["slow"], timeout=1.0)

        mock_killpg.assert_called_once_with(999, signal.SIGKILL)

    async def test_timeout_falls_back_to_proc_kill(self):
        proc = _hung_proc()
        with (
            patch(_EXEC, return_value=proc),
            patch(
                "dnf_tap.installer.subprocess.os.killpg",
                side_effect=ProcessLookupError("No such process"),
            ),
            patch("dnf_tap.installer.subprocess.os.getpgid", return_value=999),
        ):
            result = await run_command(["slow"], timeout=1.0)

        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()
        assert result.returncode == -1


# === Strict runner ===========================================================


class TestRunCommandChecked:
    """run_command_checked raises on nonzero exit instead of returning it."""

    @patch("dnf_tap.installer.subprocess.run_command", new_callable=AsyncMock)
    async def test_success_returns_result(self, mock_run):
        mock_run.return_value = CommandResult(returncode=0, stdout="Complete!")

        result = await run_command_checked(["dnf", "-y", "install", "git"], timeout=10.0)

        assert result.stdout == "Complete!"
        mock_run.assert_awaited_once_with(["dnf", "-y", "install", "git"], env=None, timeout=10.0)

    @patch("dnf_tap.installer.subprocess.run_command", new_callable=AsyncMock)
    async def test_nonzero_raises_package_command_error(self, mock_run):
        mock_run.return_value = CommandResult(
            returncode=1,
            stdout="",
            stderr="Error: Unable to find a match: nope",
        )

        with pytest.raises(PackageCommandError) as exc_info:
            await run_command_checked(["dnf", "-y", "install", "nope"])

        exc = exc_info.value
        assert exc.returncode == 1
        assert exc.command == ["dnf", "-y", "install", "nope"]
        assert exc.stderr == "Error: Unable to find a match: nope"
        assert "exit status 1" in str(exc)
        assert "Unable to find a match" in str(exc)

    @patch("dnf_tap.installer.subprocess.run_command", new_callable=AsyncMock)
    async def test_timeout_is_a_failure(self, mock_run):
        mock_run.return_value = CommandResult(returncode=-1, stderr="Command timed out after 1.0s")

        with pytest.raises(PackageCommandError, match="timed out"):
            await run_command_checked(["dnf", "-y", "remove", "git"], timeout=1.0)
