"""End-to-end drills against a simulated service using real bash commands."""

import json
import shutil
from pathlib import Path

import pytest
from typer.testing import CliRunner

from drillmeasure.cli import app
from drillmeasure.engine import DrillEngine
from drillmeasure.executors.shell import ShellExecutor
from drillmeasure.models.drill_result import HealthOutcome
from drillmeasure.models.engine_config import EngineConfig
from drillmeasure.models.scenario import Scenario

pytestmark = [
    pytest.mark.module,
    pytest.mark.skipif(shutil.which("bash") is None, reason="bash is required"),
]


@pytest.fixture
def service_dir(tmp_path: Path) -> Path:
    """Simulated service: healthy while the ``up`` flag file exists."""
    service = tmp_path / "service"
    service.mkdir()
    (service / "up").touch()
    (service / "data").write_text("42\n")
    return service


def _scenario_data(service: Path) -> dict[str, object]:
    return {
        "name": "flag file outage",
        "description": "Remove the health flag and restore it in the background",
        "rto_target": "10s",
        "rpo_target": "1m",
        "disrupt_command": f"rm -f {service}/up",
        "recover_command": (
            f"(sleep 0.3; touch {service}/up) >/dev/null 2>&1 &"
        ),
        "health_check_command": f"test -f {service}/up",
        "rpo_check": {
            "pre_snapshot": f"cp {service}/data {service}/before",
            "post_snapshot": f"cp {service}/data {service}/after",
            "verify_command": f"cmp -s {service}/before {service}/after",
        },
        "factors": {"log_commands": [f"ls {service}"]},
    }


async def test_drill_measures_recovery(service_dir: Path) -> None:
    """The engine observes the outage and measures the recovery."""
    scenario = Scenario.model_validate(_scenario_data(service_dir))
    engine = DrillEngine(
        ShellExecutor(),
        EngineConfig(poll_interval=0.1, health_check_timeout=5, command_timeout=5),
    )

    result = await engine.run(scenario)

    assert result.health_outcome == HealthOutcome.RECOVERED_WITHIN_TARGET
    assert result.rto_passed is True
    assert result.rpo_passed is True
    assert result.rta is not None
    assert result.rta.total_seconds() >= 0.2
    assert len(result.health_check_attempts) >= 3
    assert result.health_check_attempts[0].exit_code != 0
    assert result.health_check_attempts[-1].exit_code == 0
    assert result.errors == []
    assert "up" in result.factor_logs[0].stdout
    assert (service_dir / "up").exists()


async def test_drill_without_downtime(service_dir: Path) -> None:
    """A disruption that leaves the service healthy records no RTA."""
    data = _scenario_data(service_dir)
    data["disrupt_command"] = "true"
    data["recover_command"] = None
    scenario = Scenario.model_validate(data)
    engine = DrillEngine(ShellExecutor(), EngineConfig(poll_interval=0.1))

    result = await engine.run(scenario)

    assert result.health_outcome == HealthOutcome.HEALTHY_NO_DOWNTIME
    assert result.rto_passed is True
    assert result.rta is None
    assert result.rta_start_time is None
    assert len(result.health_check_attempts) == 1


async def test_drill_exceeding_rto(service_dir: Path) -> None:
    """A service that never comes back fails the RTO."""
    data = _scenario_data(service_dir)
    data["rto_target"] = "500ms"
    data["recover_command"] = None
    scenario = Scenario.model_validate(data)
    engine = DrillEngine(ShellExecutor(), EngineConfig(poll_interval=0.1))

    result = await engine.run(scenario)

    assert result.health_outcome == HealthOutcome.STILL_DOWN_EXCEEDED_TARGET
    assert result.rto_passed is False
    assert result.rta is not None
    assert result.rta.total_seconds() >= 0.5


def test_cli_run_writes_reports(service_dir: Path, tmp_path: Path) -> None:
    """The run command drives a real drill and writes both reports."""
    scenario_path = tmp_path / "scenario.yaml"
    scenario_path.write_text(json.dumps(_scenario_data(service_dir)))
    output_root = tmp_path / "reports"

    result = CliRunner().invoke(
        app,
        [
            "run",
            str(scenario_path),
            "--output-root",
            str(output_root),
            "--poll-interval",
            "0.1",
            "--strict",
        ],
    )

    assert result.exit_code == 0, result.output
    summary = json.loads(result.stdout)
    assert summary["health_outcome"] == "recovered-within-target"

    report_dir = Path(summary["report_dir"])
    markdown = (report_dir / "report.md").read_text()
    assert "**Scenario:** flag file outage" in markdown
    report = json.loads((report_dir / "report.json").read_text())
    assert report["rto_passed"] is True
    assert report["rpo_passed"] is True
