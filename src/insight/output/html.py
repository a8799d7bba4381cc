"""Static HTML report — renders an InsightReport to a self-contained HTML page."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from insight.schemas.insight import InsightReport

_TEMPLATE_DIR = Path(__file__).parent / "templates"

SEVERITY_ORDER = {"critical": 0, "high": 1, "medium": 2, "low": 3}


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["percent"] = lambda value: f"{float(value):.0%}"
    return env


def render_html_report(report: InsightReport) -> str:
    """Render an InsightReport into a self-contained HTML page."""
    template = _environment().get_template("insight.html.j2")
    risks = sorted(report.risks, key=lambda r: SEVERITY_ORDER.get(r.severity, 4))
    return template.render(
        report=report,
        title=report.project_name or report.project_id or "Insight Report",
        risks=risks,
        quick_wins=[r for r in report.recommendations if r.category.value == "quick-win"],
    )
