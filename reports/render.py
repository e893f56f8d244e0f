from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from reports.statistics import ReportStatistics

ARTIFACT_PREFIX = "weekly-report-"
ARTIFACT_SUFFIX = ".txt"

URGENCY_LABELS = (("alta", "Alta"), ("media", "Média"), ("baixa", "Baixa"))


@dataclass(frozen=True)
class RenderedReport:
    text: str
    artifact_name: str


def _get_template_env() -> Environment:
    """Create Jinja2 environment with templates directory."""
    templates_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["one_decimal"] = _format_one_decimal
    return env


def _format_one_decimal(value: float) -> str:
    return f"{value:.1f}"


def _as_utc(generated_at: datetime) -> datetime:
    if generated_at.tzinfo is None:
        return generated_at.replace(tzinfo=timezone.utc)
    return generated_at.astimezone(timezone.utc)


def artifact_name_for(generated_at: datetime) -> str:
    """weekly-report-YYYY-MM-DD.txt for the UTC date of generated_at."""
    return f"{ARTIFACT_PREFIX}{_as_utc(generated_at).date().isoformat()}{ARTIFACT_SUFFIX}"


def _prepare_context(stats: ReportStatistics, generated_at: datetime) -> Dict[str, Any]:
    return {
        "generated_at": _as_utc(generated_at).strftime("%Y-%m-%d %H:%M:%S UTC"),
        "total_count": stats.total_count,
        "average_rating": stats.average_rating,
        "urgency_rows": [
            (label, stats.urgency_distribution.get(level, 0)) for level, label in URGENCY_LABELS
        ],
        "per_day": stats.per_day,
        "undated_count": stats.undated_count,
    }


def render_report(stats: ReportStatistics, generated_at: datetime) -> RenderedReport:
    """
    Render the plain-text weekly report and its artifact name.

    Args:
        stats: Aggregated statistics for the reporting window
        generated_at: Generation timestamp; its UTC date names the artifact

    Returns:
        RenderedReport with the report text and "weekly-report-<date>.txt"

    Failure modes:
        - Raises jinja2.TemplateError if templates/weekly_report.txt.j2 is malformed or missing
    """
    env = _get_template_env()
    template = env.get_template("weekly_report.txt.j2")
    text = template.render(**_prepare_context(stats, generated_at))
    return RenderedReport(text=text, artifact_name=artifact_name_for(generated_at))
