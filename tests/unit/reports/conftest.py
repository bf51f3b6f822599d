"""Fixtures shared by the report tests."""

from datetime import datetime, timedelta, timezone

import pytest

from drillmeasure.executors.base import content_digest
from drillmeasure.models.drill_result import CommandResult, DrillResult, HealthOutcome
from drillmeasure.models.scenario import Scenario

START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def command_result(
    command: str, offset: float, exit_code: int = 0, stdout: str = "", stderr: str = ""
) -> CommandResult:
    """Build a command result starting ``offset`` seconds after START."""
    return CommandResult(
        command=command,
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        stdout_hash=content_digest(stdout),
        stderr_hash=content_digest(stderr),
        timestamp=START + timedelta(seconds=offset),
        duration=timedelta(milliseconds=200),
    )


@pytest.fixture
def recovered_result() -> DrillResult:
    """A drill that went down and recovered within target, with RPO verified."""
    scenario = Scenario(
        name="Web pod kill",
        description="Kill the web pod",
        rto_target="5m",
        rpo_target="1m",
        disrupt_command="kubectl delete pod web",
        health_check_command="curl -f http://web",
        post_disrupt_delay="5s",
    )
    attempts = [
        command_result("curl -f http://web", 6, exit_code=7, stderr="refused"),
        command_result("curl -f http://web", 11, exit_code=7, stderr="refused"),
        command_result("curl -f http://web", 16, stdout="ok"),
    ]
    return DrillResult(
        scenario=scenario,
        start_time=START,
        end_time=START + timedelta(seconds=20),
        disrupt=command_result("kubectl delete pod web", 0, stdout="pod deleted"),
        rpo_verify=command_result("./verify.sh", 17),
        post_disrupt_delay=timedelta(seconds=5),
        rta_start_time=attempts[0].timestamp,
        rta_end_time=START + timedelta(seconds=16.5),
        rta=timedelta(seconds=10.5),
        rto_target=timedelta(minutes=5),
        rto_passed=True,
        health_outcome=HealthOutcome.RECOVERED_WITHIN_TARGET,
        rpo_target=timedelta(minutes=1),
        rpo_passed=True,
        health_check_attempts=attempts,
        factor_logs=[command_result("kubectl get events", 18, stdout="events")],
    )


@pytest.fixture
def no_downtime_result() -> DrillResult:
    """A drill whose disruption failed and caused no downtime."""
    scenario = Scenario(
        name="noop",
        rto_target="30s",
        disrupt_command="false",
        health_check_command="true",
    )
    return DrillResult(
        scenario=scenario,
        start_time=START,
        end_time=START + timedelta(seconds=1),
        disrupt=command_result("false", 0, exit_code=2),
        rto_target=timedelta(seconds=30),
        rto_passed=True,
        health_outcome=HealthOutcome.HEALTHY_NO_DOWNTIME,
        health_check_attempts=[
            command_result("true", 0.5),
            command_result("true", 0.7),
        ],
        errors=["disrupt_command failed with exit code 2"],
    )
