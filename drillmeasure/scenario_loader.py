"""Load and validate drill scenarios from YAML files."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from drillmeasure.models.scenario import Scenario


def load_scenario(scenario_path: Path) -> Scenario:
    """Load a scenario definition.

    Args:
        scenario_path: Path to the scenario YAML file

    Returns:
        Parsed and validated scenario

    Raises:
        FileNotFoundError: If the scenario file doesn't exist
        ValueError: If YAML is invalid or doesn't match schema

    """
    if not scenario_path.is_file():
        raise FileNotFoundError(f"Scenario file not found: {scenario_path}")

    try:
        with scenario_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {scenario_path}: {e}") from e

    if data is None:
        raise ValueError(f"Empty scenario file: {scenario_path}")

    if not isinstance(data, dict):
        raise ValueError(f"Scenario file must contain a mapping: {scenario_path}")

    try:
        return Scenario.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid scenario in {scenario_path}: {e}") from e
