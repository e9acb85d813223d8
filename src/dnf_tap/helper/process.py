"""Supervise the long-lived dnf helper subprocess.

The helper speaks a line protocol over its standard streams: one request
line in, one newline-terminated reply line out (at most 4096 bytes). A
reply is the whitespace-separated tokens of that line.

Any transport failure (broken pipe, end of stream, oversized reply) kills
the helper and retries on a fresh one. The whole attempt sequence shares a
single deadline, so a hung helper cannot stall a caller past it. The
helper's stderr is forwarded to the debug log.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import signal
from collections.abc import Sequence

from dnf_tap.errors import (
    HelperRetriesExhaustedError,
    HelperStartError,
    HelperTimeoutError,
    HelperTransportError,
)
from dnf_tap.models import HelperState, Provides

logger = logging.getLogger(__name__)

_READ_LIMIT = 4096
_REAP_TIMEOUT = 5.0


class HelperProcess:
    """Owns at most one helper subprocess and serializes access to it.

    Construct one per server process and share it. Callers only see
    ``request``/``whatprovides``/``restart``/``terminate``; the underlying
    streams never leave this object, so nothing can hold on to handles of
    a helper that has been replaced.
    """

    def __init__(
        self,
        command: Sequence[str],
        *,
        timeout: float = 60.0,
        max_attempts: int = 5,
    ) -> None:
        if not command:
            raise ValueError("Helper command must not be empty.")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self._command = tuple(command)
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._process: asyncio.subprocess.Process | None = None
        self._stderr_log: asyncio.Task[None] | None = None
        self._reapers: set[asyncio.Task[None]] = set()
        self._state = HelperState.NOT_STARTED
        self._lock = asyncio.Lock()

    @property
    def command(self) -> tuple[str, ...]:
        return self._command

    @property
    def state(self) -> HelperState:
        return self._state

    @property
    def pid(self) -> int | None:
        """Return the helper's process ID if started, None otherwise."""
        return self._process.pid if self._process is not None else None

    async def ensure_started(self) -> None:
        """Spawn the helper unless one is already running."""
        async with self._lock:
            await self._ensure_started()

    async def restart(self) -> None:
        """Kill the current helper (if any) and spawn a fresh one."""
        async with self._lock:
            await self._restart()

    async def terminate(self) -> None:
        """Kill the helper and reap it. A later request starts a new one."""
        async with self._lock:
            await self._reap()
            if self._reapers:
                await asyncio.gather(*self._reapers)

    async def request(self, line: str) -> list[str]:
        """Send one request line and return the reply tokens.

        Raises:
            HelperStartError: If the helper cannot be spawned.
            HelperRetriesExhaustedError: If every attempt hit a transport failure.
            HelperTimeoutError: If the deadline elapsed before a reply arrived.
        """
        if "\n" in line or "\r" in line:
            raise ValueError("Helper request must be a single line.")

        async with self._lock:
            try:
                return await asyncio.wait_for(
                    self._request_with_retries(line),
                    timeout=self._timeout,
                )
            except TimeoutError as exc:
                logger.error(
                    "dnf helper did not answer '%s' within %ss; killing it",
                    line,
                    self._timeout,
                )
                # Past the deadline: kill now, reap in the background.
                self._discard()
                raise HelperTimeoutError(
                    f"The dnf helper did not answer within {self._timeout}s. "
                    "Check that the helper command works and the dnf cache is reachable."
                ) from exc

    async def whatprovides(self, name: str) -> Provides:
        """Ask the helper which package provides ``name`` and at what version."""
        tokens = await self.request(f"whatprovides {name}")
        return Provides.from_tokens(tokens)

    # ─── Internals (caller holds the lock) ────────────────────

    async def _request_with_retries(self, line: str) -> list[str]:
        last_error: HelperTransportError | None = None
        for attempt in range(1, self._max_attempts + 1):
            if attempt > 1:
                await self._restart()
            try:
                await self._ensure_started()
                return await self._exchange(line)
            except HelperTransportError as exc:
                last_error = exc
                logger.warning(
                    "dnf helper attempt %d/%d failed: %s",
                    attempt,
                    self._max_attempts,
                    exc,
                )

        logger.error("dnf helper failed %d times in a row", self._max_attempts)
        await self._reap()
        raise HelperRetriesExhaustedError(
            f"The dnf helper failed {self._max_attempts} times in a row. "
            f"Last error: {last_error}",
            attempts=self._max_attempts,
        ) from last_error

    async def _exchange(self, line: str) -> list[str]:
        process = self._process
        if process is None or process.stdin is None or process.stdout is None:
            raise HelperTransportError("dnf helper is not running.")

        try:
            process.stdin.write(f"{line}\n".encode())
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise HelperTransportError(f"Could not write to the dnf helper: {exc}") from exc

        try:
            reply = await process.stdout.readuntil(b"\n")
        except asyncio.IncompleteReadError as exc:
            raise HelperTransportError("The dnf helper closed its output stream.") from exc
        except asyncio.LimitOverrunError as exc:
            raise HelperTransportError(
                f"The dnf helper reply exceeded {_READ_LIMIT} bytes."
            ) from exc

        return reply.decode(errors="replace").split()

    async def _ensure_started(self) -> None:
        if self._process is None:
            await self._start()

    async def _restart(self) -> None:
        await self._reap(restarting=True)
        await self._start()

    async def _start(self) -> None:
        env = {**os.environ, "PYTHONUNBUFFERED": "1"}
        spawn = asyncio.create_task(
            asyncio.create_subprocess_exec(
                *self._command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=True,
                limit=_READ_LIMIT,
            )
        )
        try:
            process = await asyncio.shield(spawn)
        except asyncio.CancelledError:
            # The child may already be forked; kill it once the spawn lands.
            spawn.add_done_callback(_kill_abandoned)
            raise
        except OSError as exc:
            self._state = HelperState.NOT_STARTED
            raise HelperStartError(
                f"Could not start the dnf helper '{' '.join(self._command)}': {exc}. "
                "Set DNF_TAP_HELPER to a working helper command."
            ) from exc

        self._process = process
        self._state = HelperState.RUNNING
        if process.stderr is not None:
            self._stderr_log = asyncio.create_task(_log_stderr(process.stderr, process.pid))
        logger.debug("Started dnf helper (pid %d)", process.pid)

    async def _reap(self, *, restarting: bool = False) -> None:
        reaper = self._discard(restarting=restarting)
        if reaper is not None:
            await asyncio.shield(reaper)

    def _discard(self, *, restarting: bool = False) -> asyncio.Task[None] | None:
        """Kill the helper now and hand the wait for its exit to a tracked task."""
        process, self._process = self._process, None
        stderr_log, self._stderr_log = self._stderr_log, None
        self._state = HelperState.RESTARTING if restarting else HelperState.NOT_STARTED
        if process is None:
            return None

        _kill(process)
        reaper = asyncio.create_task(_wait_closed(process, stderr_log))
        self._reapers.add(reaper)
        reaper.add_done_callback(self._reapers.discard)
        return reaper


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(os.getpgid(process.pid), signal.SIGKILL)
    except (ProcessLookupError, OSError):
        with contextlib.suppress(ProcessLookupError):
            process.kill()
    if process.stdin is not None:
        process.stdin.close()


def _kill_abandoned(spawn: asyncio.Task[asyncio.subprocess.Process]) -> None:
    if spawn.cancelled() or spawn.exception() is not None:
        return
    process = spawn.result()
    logger.debug("Killing dnf helper (pid %d) spawned after its request gave up", process.pid)
    _kill(process)


async def _log_stderr(stream: asyncio.StreamReader, pid: int) -> None:
    """Forward the helper's stderr to the debug log until it closes."""
    while True:
        try:
            line = await stream.readline()
        except ValueError:
            # readline discards a line longer than the stream limit
            continue
        if not line:
            return
        logger.debug("dnf helper (pid %d): %s", pid, line.decode(errors="replace").rstrip())


async def _wait_closed(
    process: asyncio.subprocess.Process,
    stderr_log: asyncio.Task[None] | None,
) -> None:
    try:
        returncode = await asyncio.wait_for(
            _drain_and_wait(process, stderr_log),
            timeout=_REAP_TIMEOUT,
        )
    except TimeoutError:
        logger.warning(
            "dnf helper (pid %d) did not close its streams within %ss after SIGKILL",
            process.pid,
            _REAP_TIMEOUT,
        )
        return
    except OSError as exc:
        logger.debug("Could not reap dnf helper (pid %d): %s", process.pid, exc)
        return
    logger.debug("Reaped dnf helper (pid %d, exit %s)", process.pid, returncode)


async def _drain_and_wait(
    process: asyncio.subprocess.Process,
    stderr_log: asyncio.Task[None] | None,
) -> int:
    # wait() returns only once every pipe hits EOF, and a reader paused on
    # unread output never sees it.
    if process.stdout is not None:
        await process.stdout.read()
    if stderr_log is not None:
        await stderr_log
    return await process.wait()
