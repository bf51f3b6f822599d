"""Abstract base class for command executors."""

import asyncio
import hashlib
from abc import ABC, abstractmethod

from drillmeasure.models.drill_result import CommandResult


def content_digest(data: bytes | str) -> str:
    """Return the SHA-256 hex digest of captured output."""
    if isinstance(data, str):
        data = data.encode()
    return hashlib.sha256(data).hexdigest()


class CommandExecutor(ABC):
    """Abstract capability for running one command to completion."""

    @abstractmethod
    async def execute(
        self,
        command: str,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> CommandResult:
        """Run a command and capture its result.

        Args:
            command: Command text to execute
            timeout: Maximum run time in seconds (unbounded if None)
            cancel_event: Run-scoped cancellation signal

        Returns:
            Result of the execution. Timeouts, cancellation and launch
            failures are reported with exit code -1 instead of raising.

        """
