"""Models for command and drill execution results."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from drillmeasure.models.scenario import Scenario


class HealthOutcome(str, Enum):
    """Terminal state of the health-check polling loop."""

    HEALTHY_NO_DOWNTIME = "healthy-no-downtime"
    RECOVERED_WITHIN_TARGET = "recovered-within-target"
    RECOVERED_EXCEEDED_TARGET = "recovered-exceeded-target"
    STILL_DOWN_EXCEEDED_TARGET = "still-down-exceeded-target"
    STILL_DOWN_CANCELLED = "still-down-cancelled"
    CANCELLED = "cancelled"


class CommandResult(BaseModel):
    """Result of a single command execution."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(..., description="Command text as executed")
    exit_code: int = Field(
        ...,
        description="Process exit code, -1 on timeout, cancellation or launch error",
    )
    stdout: str = Field(default="", description="Captured standard output")
    stderr: str = Field(default="", description="Captured standard error")
    stdout_hash: str = Field(..., description="SHA-256 hex digest of stdout bytes")
    stderr_hash: str = Field(..., description="SHA-256 hex digest of stderr bytes")
    timestamp: datetime = Field(..., description="Start time of the invocation")
    duration: timedelta = Field(..., description="Wall-clock duration")

    @property
    def succeeded(self) -> bool:
        """True when the command exited with code 0."""
        return self.exit_code == 0


class DrillResult(BaseModel):
    """Complete record of one drill, built up step by step by the engine."""

    scenario: Scenario
    start_time: datetime
    end_time: datetime | None = None

    pre_snapshot: CommandResult | None = None
    disrupt: CommandResult | None = None
    recover: CommandResult | None = None
    post_snapshot: CommandResult | None = None
    rpo_verify: CommandResult | None = None

    post_disrupt_delay: timedelta = timedelta(0)

    rta_start_time: datetime | None = None
    rta_end_time: datetime | None = None
    rta: timedelta | None = None
    rto_target: timedelta
    rto_passed: bool = False
    health_outcome: HealthOutcome | None = None

    rpo_target: timedelta | None = None
    rpo_passed: bool = False

    health_check_attempts: list[CommandResult] = Field(default_factory=list)
    factor_logs: list[CommandResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def went_down(self) -> bool:
        """True when the service was observed down at least once."""
        return self.rta_start_time is not None
