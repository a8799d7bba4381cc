"""Tests for the Synthesizer agent and report assembly."""

from __future__ import annotations

import json

import pytest

from insight.agents.analyzer.agent import AnalyzerAgent
from insight.agents.risk.agent import RiskAgent
from insight.agents.strategist.agent import StrategistAgent
from insight.agents.synthesizer.agent import (
    SynthesizerAgent,
    assemble_report,
    fallback_narrative,
    overall_confidence,
)
from insight.agents.tactical.agent import TacticalAgent
from insight.schemas.agents import SynthesisInput
from insight.schemas.tools import EnrichedData


@pytest.fixture
def inputs(sample_project) -> SynthesisInput:
    analysis = AnalyzerAgent.heuristic_analyze(sample_project)
    strategy = StrategistAgent.heuristic_strategize(sample_project, analysis)
    tactical = TacticalAgent.heuristic_plan(sample_project, strategy)
    risks = RiskAgent.heuristic_assess(sample_project, analysis)
    return SynthesisInput(
        analysis=analysis,
        strategy=strategy,
        tactical=tactical,
        risks=risks,
        external_data=[EnrichedData(source="github", data=[{"repository": "a/b"}], relevance_score=0.9)],
        stage_reasoning={"analyzer": "Identified 1 patterns", "risk": "Assessed 3 risks"},
    )


class TestAssembleReport:
    def test_summary(self, sample_project, inputs) -> None:
        report = assemble_report(sample_project, inputs, fallback_narrative(sample_project))
        assert report.project_name == "Community Garden App"
        assert report.summary.headline == "Strategic insights for Community Garden App"
        assert report.summary.confidence == pytest.approx(overall_confidence(inputs))
        assert report.summary.based_on[-1] == "1 data sources analyzed"

    def test_recommendations(self, sample_project, inputs) -> None:
        report = assemble_report(sample_project, inputs, fallback_narrative(sample_project))
        ids = [r.id for r in report.recommendations]
        assert ids[0] == "rec-1"
        assert ids[-3:] == ["rec-tactical-1", "rec-tactical-2", "rec-tactical-3"]
        first = report.recommendations[0]
        assert first.category.value == "quick-win"
        assert first.priority == 1
        assert first.supporting_data[0].source == "github"
        assert report.recommendations[2].priority == 2

    def test_risks_carry_impact(self, sample_project, inputs) -> None:
        report = assemble_report(sample_project, inputs, fallback_narrative(sample_project))
        risk = next(r for r in report.risks if r.title == "Technical complexity may lead to delays")
        assert risk.severity == "medium"
        assert risk.impact == "Could cause delays or require additional resources"
        assert risk.mitigation

    def test_action_plan_dependencies_are_ids(self, sample_project, inputs) -> None:
        report = assemble_report(sample_project, inputs, fallback_narrative(sample_project))
        by_title = {a.title: a for a in report.action_plan}
        setup = by_title["Set up project management tools and tracking"]
        team = by_title["Assemble project team and assign roles"]
        scope = by_title["Define project scope and objectives"]
        assert setup.dependencies == [team.id]
        goal_actions = [a for a in report.action_plan if a.title.startswith("Work on goal")]
        assert goal_actions and all(a.dependencies == [scope.id] for a in goal_actions)
        assert scope.dependencies == []
        assert report.action_plan[0].priority.value == "high"
        assert report.action_plan[3].priority.value == "medium"

    def test_repeated_actions_get_one_positional_id(self, sample_project, inputs) -> None:
        tactical = inputs.tactical.model_copy(update={"actions": ["Ship beta", "Write docs", "Ship beta"]})
        report = assemble_report(
            sample_project,
            inputs.model_copy(update={"tactical": tactical}),
            fallback_narrative(sample_project),
        )
        assert [(a.id, a.title) for a in report.action_plan] == [
            ("action-1", "Ship beta"),
            ("action-2", "Write docs"),
        ]

    def test_reasoning_path_uses_stage_reasoning(self, sample_project, inputs) -> None:
        report = assemble_report(sample_project, inputs, fallback_narrative(sample_project))
        path = report.metadata.reasoning_path
        assert [s.agent for s in path] == ["analyzer", "strategist", "tactical", "risk"]
        assert [s.step for s in path] == [1, 2, 3, 4]
        assert path[0].reasoning == "Identified 1 patterns"
        assert path[1].reasoning == "Strategist analysis completed"
        assert report.metadata.data_sources_used == ["github"]


class TestSynthesizerAgent:
    @pytest.mark.asyncio
    async def test_llm_narrative(self, scripted_llm, sample_project, inputs) -> None:
        client = scripted_llm(json.dumps({
            "headline": "Launch small, grow with the community",
            "summary": "Start with bookings.",
            "suggestions": [{"suggestion": f"Tip {i}", "reason": "r", "source": "s"} for i in range(5)],
        }))

        response = await SynthesizerAgent(client).synthesize(sample_project, inputs)

        report = response.data
        assert response.used_llm
        assert report.summary.headline == "Launch small, grow with the community"
        assert report.summary.narrative == "Start with bookings."
        assert len(report.suggestions) == 3
        assert report.risks

    @pytest.mark.asyncio
    async def test_missing_headline_falls_back(self, scripted_llm, sample_project, inputs) -> None:
        client = scripted_llm('{"summary": "no headline"}', '{"summary": "still none"}')

        response = await SynthesizerAgent(client).synthesize(sample_project, inputs)

        assert not response.used_llm
        assert response.data.summary.headline == "Strategic insights for Community Garden App"
        assert response.data.suggestions[0].source == "project goals analysis"

    @pytest.mark.asyncio
    async def test_dry_run_report_shape(self, dry_client, sample_project, inputs) -> None:
        response = await SynthesizerAgent(dry_client).synthesize(sample_project, inputs)
        report = response.data
        assert response.confidence == report.summary.confidence
        assert report.metadata.agents_involved == ["analyzer", "strategist", "tactical", "risk", "synthesizer"]
        assert len(report.action_plan) == len(inputs.tactical.actions)
