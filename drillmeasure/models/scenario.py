"""Models for drill scenarios loaded from scenario YAML files."""

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field, field_validator

from drillmeasure.durations import parse_duration


class RPOCheck(BaseModel):
    """Commands used to capture and verify data state around a disruption."""

    model_config = ConfigDict(frozen=True)

    pre_snapshot: str | None = Field(
        default=None, description="Command capturing data state before disruption"
    )
    post_snapshot: str | None = Field(
        default=None, description="Command capturing data state after recovery"
    )
    verify_command: str | None = Field(
        default=None, description="Command exiting 0 when data loss is acceptable"
    )


class Factors(BaseModel):
    """Commands collecting contextual evidence after the drill."""

    model_config = ConfigDict(frozen=True)

    log_commands: list[str] = Field(
        default_factory=list, description="Log collection commands, run in order"
    )


class Scenario(BaseModel):
    """Complete drill scenario definition."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Scenario name")
    description: str = Field(default="", description="Free-form description")
    rto_target: str = Field(..., description="RTO target duration (e.g., '5m')")
    rpo_target: str | None = Field(default=None, description="RPO target duration")
    disrupt_command: str = Field(..., min_length=1, description="Disruption command")
    recover_command: str | None = Field(
        default=None, description="Optional recovery command"
    )
    health_check_command: str = Field(
        ..., min_length=1, description="Command exiting 0 when the service is healthy"
    )
    post_disrupt_delay: str | None = Field(
        default=None, description="Wait after disruption (e.g., '10s')"
    )
    rpo_check: RPOCheck | None = Field(default=None, description="RPO commands")
    factors: Factors | None = Field(default=None, description="Factor log commands")

    @field_validator("name", "disrupt_command", "health_check_command")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("rto_target")
    @classmethod
    def _valid_rto_target(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        _non_negative(value)
        return value

    @field_validator("rpo_target", "post_disrupt_delay")
    @classmethod
    def _valid_optional_duration(cls, value: str | None) -> str | None:
        if value:
            _non_negative(value)
        return value or None

    def rto_target_duration(self) -> timedelta:
        """Return the parsed RTO target."""
        return parse_duration(self.rto_target)

    def rpo_target_duration(self) -> timedelta | None:
        """Return the parsed RPO target, or None if not set or zero."""
        if not self.rpo_target:
            return None
        target = parse_duration(self.rpo_target)
        return target if target > timedelta(0) else None

    def post_disrupt_delay_duration(self) -> timedelta:
        """Return the parsed post-disrupt delay, or zero if not set."""
        if not self.post_disrupt_delay:
            return timedelta(0)
        return parse_duration(self.post_disrupt_delay)


def _non_negative(value: str) -> None:
    if parse_duration(value) < timedelta(0):
        raise ValueError(f"duration must not be negative: {value!r}")
