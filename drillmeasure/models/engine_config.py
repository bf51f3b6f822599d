"""Configuration model for the drill engine."""

from pydantic import BaseModel, Field


class EngineConfig(BaseModel):
    """Tuning knobs for drill execution."""

    poll_interval: float = Field(
        default=5.0, gt=0, description="Seconds between failed health checks"
    )
    health_check_timeout: float = Field(
        default=300.0, gt=0, description="Timeout in seconds for each health check"
    )
    command_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Timeout in seconds for other commands (unbounded if unset)",
    )
    shell: str = Field(default="bash", description="Shell interpreter for commands")
