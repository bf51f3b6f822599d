"""Data models for scenarios, engine configuration, and drill results."""

from drillmeasure.models.drill_result import CommandResult, DrillResult, HealthOutcome
from drillmeasure.models.engine_config import EngineConfig
from drillmeasure.models.scenario import Factors, RPOCheck, Scenario

__all__ = [
    "CommandResult",
    "DrillResult",
    "EngineConfig",
    "Factors",
    "HealthOutcome",
    "RPOCheck",
    "Scenario",
]
