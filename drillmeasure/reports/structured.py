"""Machine-readable JSON drill report."""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from drillmeasure.durations import format_duration
from drillmeasure.models.drill_result import CommandResult, DrillResult
from drillmeasure.models.scenario import Scenario


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in RFC 3339 form with second precision."""
    return value.isoformat(timespec="seconds")


class CommandResultData(BaseModel):
    """Command execution data as rendered in the JSON report."""

    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration: str
    timestamp: str
    stdout_hash: str
    stderr_hash: str


class ReportData(BaseModel):
    """Top-level JSON report structure."""

    scenario: Scenario
    start_time: str
    end_time: str | None = None
    rto_target: str
    rto_actual: str | None = None
    rto_passed: bool
    rta_start_time: str | None = None
    rta_end_time: str | None = None
    health_outcome: str | None = None
    rpo_target: str | None = None
    rpo_passed: bool
    post_disrupt_delay: str | None = None
    pre_snapshot: CommandResultData | None = None
    disrupt: CommandResultData | None = None
    recover: CommandResultData | None = None
    post_snapshot: CommandResultData | None = None
    rpo_verify: CommandResultData | None = None
    health_check_attempts: list[CommandResultData] = Field(default_factory=list)
    factor_logs: list[CommandResultData] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


def command_result_to_data(result: CommandResult) -> CommandResultData:
    """Convert a CommandResult to its report representation."""
    return CommandResultData(
        command=result.command,
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
        duration=format_duration(result.duration),
        timestamp=format_timestamp(result.timestamp),
        stdout_hash=result.stdout_hash,
        stderr_hash=result.stderr_hash,
    )


def build_report_data(result: DrillResult) -> ReportData:
    """Build the JSON report structure for a drill result."""

    def _optional(command: CommandResult | None) -> CommandResultData | None:
        return command_result_to_data(command) if command is not None else None

    def _timestamp(value: datetime | None) -> str | None:
        return format_timestamp(value) if value is not None else None

    def _duration(value: timedelta | None) -> str | None:
        return format_duration(value) if value is not None else None

    return ReportData(
        scenario=result.scenario,
        start_time=format_timestamp(result.start_time),
        end_time=_timestamp(result.end_time),
        rto_target=format_duration(result.rto_target),
        rto_actual=_duration(result.rta),
        rto_passed=result.rto_passed,
        rta_start_time=_timestamp(result.rta_start_time),
        rta_end_time=_timestamp(result.rta_end_time),
        health_outcome=result.health_outcome.value if result.health_outcome else None,
        rpo_target=_duration(result.rpo_target),
        rpo_passed=result.rpo_passed,
        post_disrupt_delay=_duration(result.post_disrupt_delay or None),
        pre_snapshot=_optional(result.pre_snapshot),
        disrupt=_optional(result.disrupt),
        recover=_optional(result.recover),
        post_snapshot=_optional(result.post_snapshot),
        rpo_verify=_optional(result.rpo_verify),
        health_check_attempts=[
            command_result_to_data(a) for a in result.health_check_attempts
        ],
        factor_logs=[command_result_to_data(log) for log in result.factor_logs],
        errors=list(result.errors),
    )


def generate_json_report(result: DrillResult) -> str:
    """Render a drill result as an indented JSON document."""
    return build_report_data(result).model_dump_json(indent=2)
