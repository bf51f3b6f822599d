"""CLI entry point for drillmeasure."""

import asyncio
import contextlib
import json
import logging
import signal
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import typer
from pydantic import ValidationError

from drillmeasure.durations import format_duration, parse_duration
from drillmeasure.engine import DrillCancelledError, DrillEngine
from drillmeasure.executors.shell import ShellExecutor
from drillmeasure.models.drill_result import DrillResult
from drillmeasure.models.engine_config import EngineConfig
from drillmeasure.models.scenario import Scenario
from drillmeasure.reports.writer import create_output_directory, write_reports
from drillmeasure.scenario_loader import load_scenario

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
    force=True,
)
logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Measure RTO and RPO in any infrastructure environment.",
    no_args_is_help=True,
)


def _fail(message: str) -> typer.Exit:
    logger.error(message)
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code=1)


async def _run_drill(
    engine: DrillEngine, scenario: Scenario, max_duration: float | None
) -> DrillResult:
    """Run the engine with cancellation wired to signals and an optional limit."""
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM)
    for sig in signals:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, cancel_event.set)
    limit = None
    if max_duration is not None:
        limit = loop.call_later(max_duration, cancel_event.set)

    try:
        return await engine.run(scenario, cancel_event)
    finally:
        if limit is not None:
            limit.cancel()
        for sig in signals:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


@app.command()
def run(  # noqa: C901
    scenario_path: Path = typer.Argument(..., help="Path to scenario YAML file"),  # noqa: B008
    output_root: Path = typer.Option(  # noqa: B008
        Path("reports"),
        envvar="DRILLMEASURE_OUTPUT_ROOT",
        help="Directory receiving timestamped report directories",
    ),
    poll_interval: float = typer.Option(
        5.0,
        envvar="DRILLMEASURE_POLL_INTERVAL",
        help="Seconds between failed health checks",
    ),
    health_check_timeout: float = typer.Option(
        300.0,
        envvar="DRILLMEASURE_HEALTH_CHECK_TIMEOUT",
        help="Timeout in seconds for each health check",
    ),
    command_timeout: float | None = typer.Option(
        None,
        envvar="DRILLMEASURE_COMMAND_TIMEOUT",
        help="Timeout in seconds for other commands (unbounded if unset)",
    ),
    shell: str = typer.Option(
        "bash", envvar="DRILLMEASURE_SHELL", help="Shell interpreter for commands"
    ),
    max_duration: str | None = typer.Option(
        None, help="Cancel the drill after this duration (e.g., '30m')"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit non-zero when RTO or RPO is not met"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Execute a drill scenario and write Markdown and JSON reports."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        scenario = load_scenario(scenario_path)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(f"Failed to load scenario: {e}")

    try:
        config = EngineConfig(
            poll_interval=poll_interval,
            health_check_timeout=health_check_timeout,
            command_timeout=command_timeout,
            shell=shell,
        )
        max_seconds = (
            parse_duration(max_duration).total_seconds() if max_duration else None
        )
    except (ValidationError, ValueError) as e:
        raise _fail(f"Invalid engine configuration: {e}")

    try:
        executor = ShellExecutor(config.shell)
    except RuntimeError as e:
        raise _fail(str(e))

    logger.info("=" * 80)
    logger.info(f"Running scenario: {scenario.name}")
    if scenario.description:
        logger.info(f"Description: {scenario.description}")
    logger.info(
        f"Health checks run every {config.poll_interval:g}s until service recovers"
    )
    logger.info("=" * 80)

    engine = DrillEngine(executor, config)
    try:
        result = asyncio.run(_run_drill(engine, scenario, max_seconds))
    except DrillCancelledError as e:
        raise _fail(f"Drill cancelled: {e}")
    except ValueError as e:
        raise _fail(f"Drill execution failed: {e}")

    try:
        output_dir = create_output_directory(
            scenario.name, output_root, result.start_time.astimezone()
        )
        write_reports(result, output_dir)
    except OSError as e:
        raise _fail(f"Failed to write reports: {e}")

    logger.info("=" * 80)
    logger.info("Drill completed")
    if result.rta is None and result.rto_passed:
        logger.info("Result: disruption did not cause downtime - ✓ PASS")
    else:
        rta = format_duration(result.rta) if result.rta is not None else "N/A"
        status = "✓ PASS" if result.rto_passed else "✗ FAIL"
        log = logger.info if result.rto_passed else logger.error
        log(f"RTA: {rta} (RTO target: {format_duration(result.rto_target)}) - {status}")
    if result.rpo_target is not None:
        log = logger.info if result.rpo_passed else logger.error
        log(f"RPO: {'✓ PASS' if result.rpo_passed else '✗ FAIL'}")
    for error in result.errors:
        logger.warning(f"  {error}")
    logger.info(f"Reports generated in: {output_dir}")

    outcome = result.health_outcome
    output = {
        "scenario": scenario.name,
        "rto_target": format_duration(result.rto_target),
        "rta": format_duration(result.rta) if result.rta is not None else None,
        "rto_passed": result.rto_passed,
        "rpo_target": (
            format_duration(result.rpo_target) if result.rpo_target else None
        ),
        "rpo_passed": result.rpo_passed,
        "health_outcome": outcome.value if outcome is not None else None,
        "health_check_attempts": len(result.health_check_attempts),
        "errors": result.errors,
        "report_dir": str(output_dir),
    }
    typer.echo(json.dumps(output, indent=2))

    missed = not result.rto_passed or (
        result.rpo_target is not None and not result.rpo_passed
    )
    if strict and missed:
        logger.error("Drill did not meet its recovery objectives")
        raise typer.Exit(code=1)


@app.command()
def validate(
    scenario_path: Path = typer.Argument(..., help="Path to scenario YAML file"),  # noqa: B008
) -> None:
    """Validate syntax, required fields and durations of a scenario file."""
    try:
        scenario = load_scenario(scenario_path)
    except (FileNotFoundError, ValueError) as e:
        raise _fail(f"Validation failed: {e}")

    typer.echo(f"✅ Scenario file is valid: {scenario_path}")
    typer.echo(f"   Name: {scenario.name}")
    typer.echo(f"   RTO Target: {scenario.rto_target}")
    if scenario.rpo_target:
        typer.echo(f"   RPO Target: {scenario.rpo_target}")


@app.command(name="version")
def show_version() -> None:
    """Print the installed drillmeasure version."""
    try:
        installed = version("drillmeasure")
    except PackageNotFoundError:
        installed = "unknown"
    typer.echo(f"drillmeasure version {installed}")


if __name__ == "__main__":  # pragma: no cover
    app()
