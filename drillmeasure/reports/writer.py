"""Write drill reports into timestamped output directories."""

import logging
from datetime import datetime
from pathlib import Path

from drillmeasure.models.drill_result import DrillResult
from drillmeasure.reports.markdown import generate_markdown_report
from drillmeasure.reports.structured import generate_json_report

logger = logging.getLogger(__name__)

MARKDOWN_REPORT = "report.md"
JSON_REPORT = "report.json"


def sanitize_file_name(name: str) -> str:
    """Keep ASCII letters, digits, '-' and '_'; spaces become '-'."""
    safe = []
    for char in name:
        if char.isascii() and (char.isalnum() or char in "-_"):
            safe.append(char)
        elif char == " ":
            safe.append("-")
    return "".join(safe)


def create_output_directory(
    scenario_name: str, root: Path, now: datetime | None = None
) -> Path:
    """Create ``<root>/<YYYY-MM-DD-HHMMSS>-<safe-name>`` and return it."""
    timestamp = (now or datetime.now()).strftime("%Y-%m-%d-%H%M%S")
    safe_name = sanitize_file_name(scenario_name)
    dir_name = f"{timestamp}-{safe_name}" if safe_name else timestamp
    output_dir = root / dir_name
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def write_reports(result: DrillResult, output_dir: Path) -> tuple[Path, Path]:
    """Write the Markdown and JSON reports for a drill result.

    Returns:
        Paths of the Markdown and JSON reports

    Raises:
        OSError: If a report cannot be written

    """
    markdown_path = output_dir / MARKDOWN_REPORT
    markdown_path.write_text(generate_markdown_report(result), encoding="utf-8")
    logger.info(f"Wrote Markdown report: {markdown_path}")

    json_path = output_dir / JSON_REPORT
    json_path.write_text(generate_json_report(result), encoding="utf-8")
    logger.info(f"Wrote JSON report: {json_path}")

    return markdown_path, json_path
