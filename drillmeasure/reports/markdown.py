"""Human-readable Markdown drill report."""

from datetime import timedelta

from drillmeasure.durations import format_duration
from drillmeasure.models.drill_result import CommandResult, DrillResult
from drillmeasure.reports.structured import format_timestamp

PASS = "✅ PASS"
FAIL = "❌ FAIL"


def generate_markdown_report(result: DrillResult) -> str:
    """Render a drill result as a Markdown document."""
    lines: list[str] = ["# Drill Report", ""]
    lines += [f"**Scenario:** {result.scenario.name}", ""]
    if result.scenario.description:
        lines += [f"**Description:** {result.scenario.description}", ""]
    lines += [f"**Execution Time:** {format_timestamp(result.start_time)}", ""]

    lines += _summary(result)
    lines += _timeline(result)
    lines += _health_checks(result)
    lines += _command_details(result)

    if result.factor_logs:
        lines += ["## Influencing Factors", ""]
        for number, log in enumerate(result.factor_logs, start=1):
            lines += [f"### Factor Log {number}", ""]
            lines += _command_block(log)

    if result.errors:
        lines += ["## Errors", ""]
        lines += [f"- {error}" for error in result.errors]
        lines.append("")

    lines += _compliance_notes(result)
    return "\n".join(lines) + "\n"


def _summary(result: DrillResult) -> list[str]:
    rta = format_duration(result.rta) if result.rta is not None else "No downtime"
    lines = [
        "## Summary",
        "",
        "| Metric | Target | Actual | Status |",
        "|--------|--------|--------|--------|",
        f"| RTO | {format_duration(result.rto_target)} | {rta} | "
        f"{PASS if result.rto_passed else FAIL} |",
    ]
    if result.rpo_target is not None:
        lines.append(
            f"| RPO | {format_duration(result.rpo_target)} | N/A | "
            f"{PASS if result.rpo_passed else FAIL} |"
        )
    if result.health_outcome is not None:
        lines += ["", f"**Health outcome:** {result.health_outcome.value}"]
    lines.append("")
    return lines


def _timeline(result: DrillResult) -> list[str]:
    lines = [
        "## Timeline",
        "",
        "| Event | Timestamp | Duration |",
        "|-------|-----------|----------|",
        f"| Start | {format_timestamp(result.start_time)} | - |",
    ]

    def _row(event: str, command: CommandResult | None) -> None:
        if command is not None:
            lines.append(
                f"| {event} | {format_timestamp(command.timestamp)} | "
                f"{format_duration(command.duration)} |"
            )

    _row("Pre-snapshot", result.pre_snapshot)
    _row("Disruption", result.disrupt)
    if result.disrupt is not None and result.post_disrupt_delay > timedelta(0):
        delay_start = result.disrupt.timestamp + result.disrupt.duration
        lines.append(
            f"| Post-disrupt delay | {format_timestamp(delay_start)} | "
            f"{format_duration(result.post_disrupt_delay)} |"
        )
    _row("Recovery", result.recover)

    if result.rta_start_time is not None:
        lines.append(
            f"| Service observed down | {format_timestamp(result.rta_start_time)} | - |"
        )
    if result.rta_end_time is not None and result.rta is not None:
        lines.append(
            f"| RTA measurement end | {format_timestamp(result.rta_end_time)} | "
            f"{format_duration(result.rta)} |"
        )

    _row("Post-snapshot", result.post_snapshot)
    _row("RPO verification", result.rpo_verify)

    if result.end_time is not None:
        lines.append(
            f"| End | {format_timestamp(result.end_time)} | "
            f"{format_duration(result.end_time - result.start_time)} |"
        )
    lines.append("")
    return lines


def _health_checks(result: DrillResult) -> list[str]:
    if not result.health_check_attempts:
        return []
    lines = [
        "## Health Check Attempts",
        "",
        f"Total attempts: {len(result.health_check_attempts)}",
        "",
        "| Attempt | Timestamp | Exit Code | Duration |",
        "|---------|-----------|-----------|----------|",
    ]
    for number, attempt in enumerate(result.health_check_attempts, start=1):
        lines.append(
            f"| {number} | {format_timestamp(attempt.timestamp)} | "
            f"{attempt.exit_code} | {format_duration(attempt.duration)} |"
        )
    lines.append("")
    return lines


def _command_details(result: DrillResult) -> list[str]:
    lines = ["## Command Execution Details", ""]
    sections = [
        ("Pre-snapshot", result.pre_snapshot),
        ("Disruption", result.disrupt),
        ("Recovery", result.recover),
        ("Post-snapshot", result.post_snapshot),
        ("RPO Verification", result.rpo_verify),
    ]
    for title, command in sections:
        if command is not None:
            lines += [f"### {title}", ""]
            lines += _command_block(command)
    return lines


def _command_block(command: CommandResult) -> list[str]:
    lines = [
        f"**Command:** `{command.command}`",
        "",
        f"**Timestamp:** {format_timestamp(command.timestamp)}",
        "",
        f"**Duration:** {format_duration(command.duration)}",
        "",
        f"**Exit Code:** {command.exit_code}",
        "",
    ]
    if command.stdout:
        lines += ["**Stdout:**", "", "```", command.stdout.rstrip("\n"), "```", ""]
    if command.stderr:
        lines += ["**Stderr:**", "", "```", command.stderr.rstrip("\n"), "```", ""]
    lines += [
        f"**Stdout Hash (SHA256):** `{command.stdout_hash}`",
        "",
        f"**Stderr Hash (SHA256):** `{command.stderr_hash}`",
        "",
    ]
    return lines


def _compliance_notes(result: DrillResult) -> list[str]:
    lines = [
        "## Compliance Notes",
        "",
        "This drill measures Recovery Time Objective (RTO) and Recovery Point "
        "Objective (RPO) as part of disaster recovery and business continuity "
        "planning.",
        "",
    ]
    if not result.went_down and result.rto_passed:
        lines.append(
            "- ✅ **RTO Compliance**: The disruption caused no observable downtime."
        )
    elif result.rto_passed:
        lines.append(
            "- ✅ **RTO Compliance**: Service recovered within the target RTO."
        )
    else:
        lines.append(
            "- ❌ **RTO Compliance**: Service did not recover within the target RTO."
        )

    if result.rpo_target is not None:
        if result.rpo_passed:
            lines.append(
                "- ✅ **RPO Compliance**: Data loss verified to be within "
                "acceptable limits."
            )
        else:
            lines.append(
                "- ❌ **RPO Compliance**: Data loss verification failed or "
                "could not be performed."
            )

    lines += [
        "",
        "This report can be used as evidence for:",
        "- SOC 2 Type II audits",
        "- ISO 27001 compliance",
        "- Internal disaster recovery planning",
        "- Service level agreement (SLA) validation",
        "",
    ]
    return lines
