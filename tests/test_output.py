"""Tests for Markdown and HTML report generation."""

from __future__ import annotations

from datetime import datetime

from insight.output.html import render_html_report
from insight.output.markdown import render_markdown_report
from insight.schemas.agents import Suggestion
from insight.schemas.insight import (
    ActionItem,
    DataPoint,
    InsightMetadata,
    InsightReport,
    InsightSummary,
    ReasoningStep,
    Recommendation,
    RecommendationCategory,
    Risk,
)


def _make_report() -> InsightReport:
    """Build a sample InsightReport for testing."""
    return InsightReport(
        project_id="p1",
        project_name="Garden <Hub>",
        generated_at=datetime(2026, 3, 1, 9, 30),
        summary=InsightSummary(
            headline="Focus on the booking API first",
            confidence=0.82,
            based_on=["analysis", "github"],
            narrative="The project is well scoped.",
        ),
        recommendations=[
            Recommendation(
                id="rec-1",
                title="Ship an MVP",
                description="Ship a minimal booking flow",
                priority=1,
                category=RecommendationCategory.QUICK_WIN,
                confidence=0.9,
                supporting_data=[DataPoint(source="github", value="api-kit")],
            ),
            Recommendation(
                id="rec-2",
                title="Plan growth",
                description="Grow to 500 users",
                category=RecommendationCategory.LONG_TERM,
                confidence=0.6,
            ),
        ],
        suggestions=[Suggestion(suggestion="Add a timeline", reason="Dates help planning", source="validator")],
        risks=[
            Risk(id="risk-1", title="Scope creep", description="Goals keep growing", severity="low"),
            Risk(
                id="risk-2",
                title="API outage",
                description="External APIs may fail",
                severity="critical",
                mitigation=["Cache responses"],
                impact="Bookings stop",
            ),
        ],
        action_plan=[
            ActionItem(id="action-1", title="Set up repo", description="Create the repo"),
            ActionItem(
                id="action-2", title="Build API", description="Bookings API",
                estimated_time="2 weeks", dependencies=["action-1"],
            ),
        ],
        metadata=InsightMetadata(
            agents_involved=["analyzer", "strategist"],
            data_sources_used=["github"],
            processing_time_ms=1234,
            reasoning_path=[ReasoningStep(agent="analyzer", step=1, reasoning="Looked at goals")],
        ),
    )


class TestRenderMarkdownReport:
    def test_renders_title_and_date(self) -> None:
        md = render_markdown_report(_make_report())
        assert md.startswith("# Insight Report: Garden <Hub>")
        assert "*Generated: 2026-03-01 09:30*" in md

    def test_renders_summary(self) -> None:
        md = render_markdown_report(_make_report())
        assert "**Focus on the booking API first**" in md
        assert "Confidence: 82%" in md
        assert "- github" in md

    def test_renders_suggestions(self) -> None:
        md = render_markdown_report(_make_report())
        assert "- **Add a timeline**: Dates help planning *(source: validator)*" in md

    def test_renders_recommendations_table(self) -> None:
        md = render_markdown_report(_make_report())
        assert "| rec-1 | Ship a minimal booking flow | quick-win | P1 | 90% |" in md
        assert "*Supporting data from: github*" in md

    def test_renders_risks_with_icons(self) -> None:
        md = render_markdown_report(_make_report())
        assert "### 🔴 API outage" in md
        assert "  - Cache responses" in md

    def test_renders_action_plan(self) -> None:
        md = render_markdown_report(_make_report())
        assert "| action-1 | Set up repo | medium | 1 week | - |" in md
        assert "| action-2 | Build API | medium | 2 weeks | action-1 |" in md

    def test_renders_metadata(self) -> None:
        md = render_markdown_report(_make_report())
        assert "- **Processing time:** 1234 ms" in md
        assert "1. *analyzer*: Looked at goals" in md

    def test_empty_report_still_renders(self) -> None:
        report = InsightReport(project_id="p2", summary=InsightSummary(headline="Nothing yet"))
        md = render_markdown_report(report)
        assert "# Insight Report: p2" in md
        assert "## Recommendations" not in md
        assert "- **Data sources:** none" in md


class TestRenderHtmlReport:
    def test_is_a_full_page(self) -> None:
        html = render_html_report(_make_report())
        assert html.lstrip().startswith("<!DOCTYPE html>")
        assert "</html>" in html

    def test_escapes_project_text(self) -> None:
        html = render_html_report(_make_report())
        assert "Garden &lt;Hub&gt;" in html
        assert "Garden <Hub>" not in html

    def test_risks_sorted_by_severity(self) -> None:
        html = render_html_report(_make_report())
        assert html.index("External APIs may fail") < html.index("Goals keep growing")

    def test_quick_wins_and_confidence(self) -> None:
        html = render_html_report(_make_report())
        assert "1 quick win" in html
        assert "82%" in html
        assert "sev-critical" in html

    def test_falls_back_to_project_id_for_title(self) -> None:
        report = InsightReport(project_id="p2", summary=InsightSummary(headline="Nothing yet"))
        assert "Insight Report: p2" in render_html_report(report)
