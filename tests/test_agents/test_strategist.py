"""Tests for the Strategist agent."""

from __future__ import annotations

from datetime import date

import pytest

from insight.agents.analyzer.agent import AnalyzerAgent
from insight.agents.strategist.agent import StrategistAgent, suggest_timeline
from insight.schemas.agents import AnalysisResult
from insight.schemas.project import ProjectCategory, Timeline


class TestSuggestTimeline:
    @pytest.mark.parametrize(
        ("end", "expected"),
        [
            (date(2026, 1, 15), "Sprint-based approach with weekly milestones"),
            (date(2026, 3, 1), "Phased approach with monthly milestones"),
            (date(2026, 12, 31), "Quarterly milestones with regular reviews"),
        ],
    )
    def test_by_duration(self, sample_project, end, expected) -> None:
        project = sample_project.model_copy(update={"timeline": Timeline(start_date=date(2026, 1, 1), end_date=end)})
        assert suggest_timeline(project) == expected

    def test_without_timeline(self, sample_project) -> None:
        project = sample_project.model_copy(update={"timeline": None})
        assert suggest_timeline(project) == "Establish clear timeline with defined milestones"


class TestHeuristicStrategize:
    def test_tech_project(self, sample_project) -> None:
        analysis = AnalyzerAgent.heuristic_analyze(sample_project)
        result = StrategistAgent.heuristic_strategize(sample_project, analysis)
        assert result.strategies[0].startswith("Build on identified strengths:")
        assert "Adopt agile development methodology" in result.strategies
        assert result.priorities[0] == "Focus on high-priority goals: 1 identified"
        assert result.resources[0] == "Development team and technical expertise"
        assert result.confidence == 1.0

    def test_business_project_with_gaps(self, sample_project) -> None:
        project = sample_project.model_copy(update={"category": ProjectCategory.BUSINESS, "timeline": None})
        analysis = AnalysisResult(
            weaknesses=["Missing timeline makes scheduling and planning challenging"], confidence=0.4,
        )
        result = StrategistAgent.heuristic_strategize(project, analysis)
        assert "Conduct market research and validation" in result.strategies
        assert "Address critical gaps: Missing timeline makes scheduling and planning challenging" in result.priorities
        assert "Project management tools and expertise" in result.resources
        assert result.confidence == pytest.approx((0.4 + 0.9) / 2)


class TestStrategistAgent:
    @pytest.mark.asyncio
    async def test_dry_run(self, dry_client, sample_project) -> None:
        analysis = AnalyzerAgent.heuristic_analyze(sample_project)
        response = await StrategistAgent(dry_client).strategize(sample_project, analysis)
        assert response.success
        assert response.reasoning.startswith(f"Generated {len(response.data.strategies)} strategic")

    @pytest.mark.asyncio
    async def test_llm_keeps_model_confidence(self, scripted_llm, sample_project) -> None:
        client = scripted_llm('{"strategies": ["Ship an MVP"], "priorities": [], "confidence": 0.6}')
        response = await StrategistAgent(client).strategize(sample_project, AnalysisResult(confidence=1.0))
        assert response.data.strategies == ["Ship an MVP"]
        assert response.confidence == 0.6
