"""Drill engine coordinating disruption, recovery and health-check polling."""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum

from drillmeasure.durations import format_duration
from drillmeasure.executors.base import CommandExecutor
from drillmeasure.models.drill_result import CommandResult, DrillResult, HealthOutcome
from drillmeasure.models.engine_config import EngineConfig
from drillmeasure.models.scenario import Scenario

logger = logging.getLogger(__name__)


class DrillCancelledError(RuntimeError):
    """Raised when a drill is cancelled before it can produce a full result."""

    def __init__(self, message: str, partial_result: DrillResult) -> None:
        """Keep the partially filled result for callers that want it."""
        super().__init__(message)
        self.partial_result = partial_result


class _PollState(Enum):
    AWAITING_DOWN = "awaiting-down"
    AWAITING_RECOVERY = "awaiting-recovery"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DrillEngine:
    """Executes one drill scenario end to end."""

    def __init__(
        self, executor: CommandExecutor, config: EngineConfig | None = None
    ) -> None:
        """Initialize engine with an executor and tuning configuration."""
        self.executor = executor
        self.config = config or EngineConfig()

    async def run(
        self, scenario: Scenario, cancel_event: asyncio.Event | None = None
    ) -> DrillResult:
        """Run a complete drill and return its result.

        Args:
            scenario: Validated scenario to execute
            cancel_event: Run-scoped cancellation signal

        Returns:
            Completed drill result. Failing commands are recorded in
            ``errors`` and never abort the run.

        Raises:
            ValueError: If a duration in the scenario is malformed
            DrillCancelledError: If cancelled during the post-disrupt delay

        """
        if cancel_event is None:
            cancel_event = asyncio.Event()

        try:
            rto_target = scenario.rto_target_duration()
        except ValueError as e:
            raise ValueError(f"invalid RTO target: {e}") from e
        try:
            rpo_target = scenario.rpo_target_duration()
        except ValueError as e:
            raise ValueError(f"invalid RPO target: {e}") from e
        try:
            delay = scenario.post_disrupt_delay_duration()
        except ValueError as e:
            raise ValueError(f"invalid post_disrupt_delay: {e}") from e

        result = DrillResult(
            scenario=scenario,
            start_time=_now(),
            rto_target=rto_target,
            rpo_target=rpo_target,
            post_disrupt_delay=delay,
        )
        logger.info(f"Drill started: {scenario.name}")

        rpo_check = scenario.rpo_check

        if rpo_check and rpo_check.pre_snapshot:
            logger.info("Capturing pre-disruption snapshot...")
            result.pre_snapshot = await self._run_step(
                rpo_check.pre_snapshot, "pre_snapshot command", result, cancel_event
            )

        logger.info("Executing disruption command...")
        result.disrupt = await self._run_step(
            scenario.disrupt_command, "disrupt_command", result, cancel_event
        )

        if delay.total_seconds() > 0:
            logger.info(f"Waiting {format_duration(delay)} after disruption...")
            if await self._wait(delay.total_seconds(), cancel_event):
                raise DrillCancelledError(
                    "drill cancelled during post-disrupt delay", result
                )

        probe = await self._detect_down(scenario, result, cancel_event)

        if scenario.recover_command:
            logger.info("Executing recovery command...")
            result.recover = await self._run_step(
                scenario.recover_command, "recover_command", result, cancel_event
            )
            if result.recover.succeeded:
                logger.info("Recovery command completed successfully")

        if probe is not None and probe.succeeded:
            # the healthy probe is the first AWAITING_DOWN evaluation
            result.rto_passed = True
            result.health_outcome = HealthOutcome.HEALTHY_NO_DOWNTIME
        else:
            result.health_outcome = await self._poll_health(
                scenario, result, cancel_event
            )
        logger.info(f"Health polling finished: {result.health_outcome.value}")

        if rpo_check and rpo_check.post_snapshot:
            logger.info("Capturing post-recovery snapshot...")
            result.post_snapshot = await self._run_step(
                rpo_check.post_snapshot, "post_snapshot command", result, cancel_event
            )

        await self._verify_rpo(scenario, result, cancel_event)

        if scenario.factors:
            for log_command in scenario.factors.log_commands:
                logger.info(f"Collecting factor log: {log_command}")
                log_result = await self._run_step(
                    log_command, "factor log command", result, cancel_event
                )
                result.factor_logs.append(log_result)

        self._finalize(result)
        logger.info(f"Drill finished: {scenario.name}")
        return result

    async def _run_step(
        self,
        command: str,
        label: str,
        result: DrillResult,
        cancel_event: asyncio.Event,
    ) -> CommandResult:
        """Run one step command, recording a non-fatal error on failure."""
        command_result = await self.executor.execute(
            command, timeout=self.config.command_timeout, cancel_event=cancel_event
        )
        if not command_result.succeeded:
            message = f"{label} failed with exit code {command_result.exit_code}"
            logger.error(message)
            result.errors.append(message)
        return command_result

    async def _check_health(
        self, scenario: Scenario, result: DrillResult, cancel_event: asyncio.Event
    ) -> CommandResult:
        """Run one health check and append it to the attempt history."""
        attempt_number = len(result.health_check_attempts) + 1
        if result.rta_start_time is not None:
            elapsed = format_duration(_now() - result.rta_start_time, precision=1)
            logger.info(
                f"[Health Check #{attempt_number}] Checking (elapsed: {elapsed})..."
            )
        else:
            logger.info(f"[Health Check #{attempt_number}] Checking...")

        attempt = await self.executor.execute(
            scenario.health_check_command,
            timeout=self.config.health_check_timeout,
            cancel_event=cancel_event,
        )
        result.health_check_attempts.append(attempt)

        if attempt.succeeded:
            logger.info(f"[Health Check #{attempt_number}] Service is healthy")
        else:
            logger.warning(
                f"[Health Check #{attempt_number}] Health check failed "
                f"(exit code: {attempt.exit_code})"
            )
            if attempt.stderr:
                logger.warning(f"  Error: {attempt.stderr.strip()}")
        return attempt

    async def _detect_down(
        self, scenario: Scenario, result: DrillResult, cancel_event: asyncio.Event
    ) -> CommandResult | None:
        """Probe health right after the disruption to mark the start of RTA.

        Returns:
            The probe attempt, or None if the run was already cancelled

        """
        if cancel_event.is_set():
            return None

        probe = await self._check_health(scenario, result, cancel_event)
        if not probe.succeeded and not cancel_event.is_set():
            result.rta_start_time = probe.timestamp
            logger.info("Service observed down, RTA measurement started")
        return probe

    async def _poll_health(
        self, scenario: Scenario, result: DrillResult, cancel_event: asyncio.Event
    ) -> HealthOutcome:
        """Poll the health check until the service is healthy or RTO is exceeded.

        The loop is a two-state machine. In ``AWAITING_DOWN`` a healthy check
        ends the loop with no downtime, a failing one starts RTA. In
        ``AWAITING_RECOVERY`` a healthy check ends RTA, a failing one either
        exceeds the deadline ``rta_start + rto_target`` or waits one poll
        interval before the next attempt.
        """
        rta_start = result.rta_start_time
        if rta_start is not None:
            state = _PollState.AWAITING_RECOVERY
        else:
            state = _PollState.AWAITING_DOWN

        while True:
            # every attempt while awaiting recovery follows a failed one
            if state is _PollState.AWAITING_RECOVERY and rta_start is not None:
                if _now() > rta_start + result.rto_target:
                    self._finish_still_down(result, rta_start)
                    return HealthOutcome.STILL_DOWN_EXCEEDED_TARGET
                if await self._wait(self.config.poll_interval, cancel_event):
                    return self._finish_cancelled(result, rta_start)
            elif cancel_event.is_set():
                return self._finish_cancelled(result, rta_start)

            attempt = await self._check_health(scenario, result, cancel_event)
            if attempt.succeeded:
                if rta_start is None:
                    result.rto_passed = True
                    return HealthOutcome.HEALTHY_NO_DOWNTIME
                return self._finish_recovered(result, rta_start)

            if cancel_event.is_set():
                return self._finish_cancelled(result, rta_start)

            if state is _PollState.AWAITING_DOWN:
                state = _PollState.AWAITING_RECOVERY
                rta_start = result.rta_start_time = attempt.timestamp
                logger.info("Service observed down, RTA measurement started")

    def _finish_recovered(
        self, result: DrillResult, rta_start: datetime
    ) -> HealthOutcome:
        result.rta_end_time = _now()
        result.rta = result.rta_end_time - rta_start
        result.rto_passed = result.rta <= result.rto_target
        logger.info(
            f"Service recovered after {format_duration(result.rta)} "
            f"(RTO target: {format_duration(result.rto_target)})"
        )
        if result.rto_passed:
            return HealthOutcome.RECOVERED_WITHIN_TARGET
        return HealthOutcome.RECOVERED_EXCEEDED_TARGET

    def _finish_still_down(self, result: DrillResult, rta_start: datetime) -> None:
        result.rta_end_time = _now()
        result.rta = result.rta_end_time - rta_start
        result.rto_passed = False
        logger.error(
            f"Service still down after {format_duration(result.rta)} "
            f"(RTO target: {format_duration(result.rto_target)})"
        )

    def _finish_cancelled(
        self, result: DrillResult, rta_start: datetime | None
    ) -> HealthOutcome:
        logger.warning("Health polling cancelled")
        if rta_start is None:
            return HealthOutcome.CANCELLED
        self._finish_still_down(result, rta_start)
        return HealthOutcome.STILL_DOWN_CANCELLED

    async def _verify_rpo(
        self, scenario: Scenario, result: DrillResult, cancel_event: asyncio.Event
    ) -> None:
        rpo_check = scenario.rpo_check
        if rpo_check and rpo_check.verify_command:
            logger.info("Verifying RPO...")
            result.rpo_verify = await self._run_step(
                rpo_check.verify_command,
                "rpo verify_command",
                result,
                cancel_event,
            )
            result.rpo_passed = result.rpo_verify.succeeded
        elif result.rpo_target is not None:
            message = (
                "RPO target specified but no verify_command provided; "
                "RPO cannot be measured"
            )
            logger.error(message)
            result.errors.append(message)

    def _finalize(self, result: DrillResult) -> None:
        result.end_time = _now()
        if result.rta_start_time is not None and result.rta_end_time is None:
            result.rta_end_time = result.end_time
            result.rta = result.rta_end_time - result.rta_start_time
            result.rto_passed = result.rta <= result.rto_target

    async def _wait(self, seconds: float, cancel_event: asyncio.Event) -> bool:
        """Sleep for ``seconds``; return True if cancelled first."""
        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
