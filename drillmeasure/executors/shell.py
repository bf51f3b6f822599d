"""Shell-backed command executor."""

import asyncio
import contextlib
import logging
import os
import shutil
import signal
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from drillmeasure.durations import format_duration
from drillmeasure.executors.base import CommandExecutor, content_digest
from drillmeasure.models.drill_result import CommandResult

logger = logging.getLogger(__name__)


class ShellExecutor(CommandExecutor):
    """Runs commands through a shell interpreter (``<shell> -c <command>``)."""

    def __init__(self, shell: str = "bash") -> None:
        """Resolve the shell interpreter.

        Raises:
            RuntimeError: If the shell cannot be found on PATH

        """
        resolved = shutil.which(shell)
        if resolved is None:
            raise RuntimeError(f"Shell interpreter not found: {shell}")
        self.shell = resolved

    async def execute(
        self,
        command: str,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CommandResult:
        """Run a command through the shell and capture its result."""
        timestamp = datetime.now(timezone.utc)
        start = time.monotonic()

        if cancel_event is not None and cancel_event.is_set():
            return _build_result(
                command, -1, b"", b"", timestamp, start, "command canceled"
            )

        logger.debug(f"Executing: {command}")
        try:
            process = await asyncio.create_subprocess_exec(
                self.shell,
                "-c",
                command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            return _build_result(command, -1, b"", b"", timestamp, start, str(e))

        communicate = asyncio.ensure_future(process.communicate())
        waiters: set[asyncio.Future[Any]] = {communicate}
        cancel_wait: asyncio.Future[Any] | None = None
        if cancel_event is not None:
            cancel_wait = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_wait)

        try:
            await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )

            reason = None
            if not communicate.done():
                _kill_process_group(process)
                if cancel_wait is not None and cancel_wait.done():
                    reason = "command canceled"
                else:
                    limit = format_duration(timedelta(seconds=timeout or 0))
                    reason = f"command timed out after {limit}"

            stdout, stderr = await communicate
        except asyncio.CancelledError:
            _kill_process_group(process)
            communicate.cancel()
            raise
        finally:
            if cancel_wait is not None:
                cancel_wait.cancel()

        if reason is not None:
            return _build_result(command, -1, stdout, stderr, timestamp, start, reason)

        returncode = process.returncode
        if returncode is None or returncode < 0:
            # killed by a signal; negative codes other than -1 are reserved
            failure = None
            if returncode is not None:
                failure = f"command terminated by signal {-returncode}"
            return _build_result(command, -1, stdout, stderr, timestamp, start, failure)
        return _build_result(command, returncode, stdout, stderr, timestamp, start)


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """Kill the shell and every process it started."""
    with contextlib.suppress(ProcessLookupError):
        os.killpg(process.pid, signal.SIGKILL)


def _build_result(
    command: str,
    exit_code: int,
    stdout: bytes,
    stderr: bytes,
    timestamp: datetime,
    start: float,
    failure: str | None = None,
) -> CommandResult:
    stderr_text = stderr.decode(errors="replace")
    if failure is not None and not stderr_text:
        stderr_text = failure
    return CommandResult(
        command=command,
        exit_code=exit_code,
        stdout=stdout.decode(errors="replace"),
        stderr=stderr_text,
        stdout_hash=content_digest(stdout),
        stderr_hash=content_digest(stderr),
        timestamp=timestamp,
        duration=timedelta(seconds=time.monotonic() - start),
    )
