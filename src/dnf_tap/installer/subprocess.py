"""Safe async subprocess execution for dnf and rpm commands."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from dnf_tap.errors import PackageCommandError
from dnf_tap.models import CommandResult

logger = logging.getLogger(__name__)

_OUTPUT_LIMIT = 2000


async def run_command(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: float = 60.0,
) -> CommandResult:
    """Run a subprocess with timeout. Never raises on a nonzero exit.

    Uses asyncio.create_subprocess_exec -- never shell=True.
    Output is truncated to prevent context bloat.
    Uses start_new_session=True so child processes can be killed as a group.
    """
    logger.debug("Running %s", " ".join(cmd))
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
        start_new_session=True,
    )
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        try:
            os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
        except (ProcessLookupError, OSError):
            proc.kill()
        await proc.wait()
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(cmd))
        return CommandResult(returncode=-1, stdout="", stderr=f"Command timed out after {timeout}s")

    return CommandResult(
        returncode=proc.returncode or 0,
        stdout=stdout_bytes.decode(errors="replace")[:_OUTPUT_LIMIT],
        stderr=stderr_bytes.decode(errors="replace")[:_OUTPUT_LIMIT],
    )


async def run_command_checked(
    cmd: list[str],
    env: dict[str, str] | None = None,
    timeout: float = 60.0,
) -> CommandResult:
    """Like run_command, but a nonzero exit is a hard failure.

    Raises:
        PackageCommandError: If the command exits nonzero or times out.
    """
    result = await run_command(cmd, env=env, timeout=timeout)
    if not result.ok:
        detail = (result.stderr or result.stdout).strip()
        raise PackageCommandError(
            f"Command '{' '.join(cmd)}' failed with exit status {result.returncode}"
            + (f": {detail}" if detail else "."),
            command=list(cmd),
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result
