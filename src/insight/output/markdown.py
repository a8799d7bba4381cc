"""Markdown report builder — renders an InsightReport to a structured Markdown document."""

from __future__ import annotations

from insight.schemas.insight import InsightReport

SEVERITY_ICONS = {"critical": "🔴", "high": "🟠", "medium": "🟡", "low": "🟢"}


def render_markdown_report(report: InsightReport) -> str:
    """Render an InsightReport into a Markdown string."""
    sections: list[str] = []

    # Title
    sections.append(f"# Insight Report: {report.project_name or report.project_id}\n")
    sections.append(f"*Generated: {report.generated_at:%Y-%m-%d %H:%M}*\n")

    # Summary
    summary = report.summary
    sections.append("## Summary\n")
    sections.append(f"**{summary.headline}**\n")
    sections.append(f"Confidence: {summary.confidence:.0%}\n")
    if summary.narrative:
        sections.append(summary.narrative + "\n")
    if summary.based_on:
        sections.append("Based on:")
        for item in summary.based_on:
            sections.append(f"- {item}")
        sections.append("")

    # Suggestions
    if report.suggestions:
        sections.append("## Suggestions\n")
        for s in report.suggestions:
            line = f"- **{s.suggestion}**"
            if s.reason:
                line += f": {s.reason}"
            if s.source:
                line += f" *(source: {s.source})*"
            sections.append(line)
        sections.append("")

    # Recommendations
    if report.recommendations:
        sections.append("## Recommendations\n")
        sections.append("| # | Recommendation | Category | Priority | Confidence |")
        sections.append("|---|---------------|----------|----------|------------|")
        for rec in report.recommendations:
            sections.append(
                f"| {rec.id} | {rec.description} | {rec.category.value} "
                f"| P{rec.priority} | {rec.confidence:.0%} |"
            )
        sections.append("")

        sources = {dp.source for rec in report.recommendations for dp in rec.supporting_data}
        if sources:
            sections.append(f"*Supporting data from: {', '.join(sorted(sources))}*\n")

    # Risks
    if report.risks:
        sections.append("## Risks\n")
        for risk in report.risks:
            icon = SEVERITY_ICONS.get(risk.severity, "⚪")
            sections.append(f"### {icon} {risk.title}\n")
            sections.append(f"- **Severity:** {risk.severity}")
            sections.append(f"- **Impact:** {risk.impact}")
            if risk.mitigation:
                sections.append("- **Mitigation:**")
                for m in risk.mitigation:
                    sections.append(f"  - {m}")
            sections.append("")

    # Action plan
    if report.action_plan:
        sections.append("## Action Plan\n")
        sections.append("| ID | Action | Priority | Estimate | Depends on |")
        sections.append("|----|--------|----------|----------|------------|")
        for item in report.action_plan:
            depends = ", ".join(item.dependencies) or "-"
            sections.append(
                f"| {item.id} | {item.title} | {item.priority.value} "
                f"| {item.estimated_time} | {depends} |"
            )
        sections.append("")

    # Metadata
    meta = report.metadata
    sections.append("## How this report was made\n")
    sections.append(f"- **Agents:** {', '.join(meta.agents_involved) or 'N/A'}")
    sections.append(f"- **Data sources:** {', '.join(meta.data_sources_used) or 'none'}")
    sections.append(f"- **Processing time:** {meta.processing_time_ms} ms")
    if meta.reasoning_path:
        sections.append("- **Reasoning path:**")
        for step in meta.reasoning_path:
            sections.append(f"  {step.step}. *{step.agent}*: {step.reasoning}")
    sections.append("")

    return "\n".join(sections)
