"""Synthesizer — turns every stage's output into the final insight report.

The LLM only writes the headline, narrative summary and a few suggestions.
Recommendations, risks, the action plan and metadata are assembled
deterministically from the earlier stages so the report always has the same
shape whether or not the LLM answered.
"""

from __future__ import annotations

import json
import logging
import re

from insight.agents.base import BaseAgent, extract_json
from insight.agents.synthesizer.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import (
    AgentConfig,
    AgentResponse,
    RiskAssessmentResult,
    Suggestion,
    SynthesisInput,
    SynthesisNarrative,
    TacticalResult,
)
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
from insight.schemas.project import Priority, ProjectPayload

logger = logging.getLogger(__name__)

AGENTS_INVOLVED = ["analyzer", "strategist", "tactical", "risk", "synthesizer"]

IMPACT_BY_SEVERITY = {
    "critical": "Could derail project timeline and objectives",
    "high": "May significantly impact project success",
    "medium": "Could cause delays or require additional resources",
    "low": "Minor impact, manageable with proper planning",
}

_BEFORE_RE = re.compile(r"^(?P<first>.+?) (?:should happen|must be completed) before (?P<then>.+)$")


class SynthesizerAgent(BaseAgent):
    key = "synthesizer"
    config = AgentConfig(
        name="Synthesizer",
        description="Combines all perspectives into coherent advice",
        temperature=0.5,
        max_tokens=2500,
    )
    system_prompt = SYSTEM_PROMPT

    async def synthesize(self, project: ProjectPayload, inputs: SynthesisInput) -> AgentResponse[InsightReport]:
        return await self._answer(
            lambda: self._synthesize_with_llm(project, inputs),
            lambda: assemble_report(project, inputs, fallback_narrative(project)),
            confidence=lambda r: r.summary.confidence,
            reasoning=lambda r: f"Synthesized insights from {len(r.metadata.reasoning_path)} reasoning steps",
        )

    async def _synthesize_with_llm(self, project: ProjectPayload, inputs: SynthesisInput) -> InsightReport:
        narrative = await self._complete_with_retry(build_user_message(project, inputs), self._parse)
        return assemble_report(project, inputs, narrative)

    @staticmethod
    def _parse(raw: str) -> SynthesisNarrative:
        narrative = SynthesisNarrative.model_validate(extract_json(raw))
        if not narrative.headline:
            raise ValueError("Synthesis response is missing a headline")
        narrative.suggestions = narrative.suggestions[:3]
        return narrative


def fallback_narrative(project: ProjectPayload) -> SynthesisNarrative:
    return SynthesisNarrative(
        headline=f"Strategic insights for {project.project_name}",
        summary=(
            "Consider breaking down your project goals into smaller milestones "
            "to track progress effectively."
        ),
        suggestions=[
            Suggestion(
                suggestion="Start by breaking down your goals into smaller, measurable milestones",
                reason="This helps track progress and maintain focus",
                source="project goals analysis",
            )
        ],
    )


def overall_confidence(inputs: SynthesisInput) -> float:
    scores = [
        inputs.analysis.confidence,
        inputs.strategy.confidence,
        inputs.tactical.confidence,
        inputs.risks.confidence,
    ]
    return sum(scores) / len(scores)


def assemble_report(
    project: ProjectPayload,
    inputs: SynthesisInput,
    narrative: SynthesisNarrative,
) -> InsightReport:
    """Build the report around the narrative."""
    return InsightReport(
        project_name=project.project_name,
        summary=InsightSummary(
            headline=narrative.headline,
            confidence=overall_confidence(inputs),
            based_on=[
                f"{len(inputs.analysis.patterns)} patterns identified",
                f"{len(inputs.strategy.strategies)} strategies recommended",
                f"{len(inputs.risks.risks)} risks assessed",
                f"{len(inputs.external_data)} data sources analyzed",
            ],
            narrative=narrative.summary,
        ),
        recommendations=_recommendations(project, inputs),
        suggestions=narrative.suggestions,
        risks=_risks(inputs.risks),
        action_plan=_action_plan(inputs.tactical),
        metadata=InsightMetadata(
            agents_involved=list(AGENTS_INVOLVED),
            data_sources_used=[d.source for d in inputs.external_data],
            reasoning_path=_reasoning_path(inputs),
        ),
    )


def _recommendations(project: ProjectPayload, inputs: SynthesisInput) -> list[Recommendation]:
    supporting = [
        DataPoint(
            source=d.source,
            value=json.dumps(d.data, default=str)[:100],
            timestamp=d.timestamp,
            relevance=d.relevance_score or 0.5,
        )
        for d in inputs.external_data
    ]

    recommendations = [
        Recommendation(
            id=f"rec-{index}",
            title=f"Strategic Approach: {strategy[:50]}",
            description=strategy,
            priority=1 if index <= 2 else 2,
            category=RecommendationCategory.QUICK_WIN if index == 1 else RecommendationCategory.STRATEGIC,
            confidence=inputs.strategy.confidence,
            reasoning=f"Based on analysis of {project.category.value} project characteristics",
            supporting_data=supporting,
        )
        for index, strategy in enumerate(inputs.strategy.strategies, start=1)
    ]
    recommendations.extend(
        Recommendation(
            id=f"rec-tactical-{index}",
            title=f"Action: {action[:50]}",
            description=action,
            priority=2,
            category=RecommendationCategory.QUICK_WIN,
            confidence=inputs.tactical.confidence,
            reasoning="Immediate actionable step",
        )
        for index, action in enumerate(inputs.tactical.actions[:3], start=1)
    )
    return recommendations


def _risks(assessment: RiskAssessmentResult) -> list[Risk]:
    risks = []
    for index, text in enumerate(assessment.risks, start=1):
        severity = assessment.severity.get(text, "medium")
        risks.append(Risk(
            id=f"risk-{index}",
            title=text[:100],
            description=text,
            severity=severity,
            probability=0.5,
            mitigation=assessment.mitigations.get(text, []),
            impact=IMPACT_BY_SEVERITY.get(severity, IMPACT_BY_SEVERITY["medium"]),
        ))
    return risks


def _prerequisites(action: str, dependencies: list[str], ids: dict[str, str]) -> list[str]:
    """Ids of the actions that must precede ``action``."""
    found = []
    for dependency in dependencies:
        match = _BEFORE_RE.match(dependency)
        if not match or match["first"] == action:
            continue
        then = match["then"]
        applies = action in then or ("goal work" in then and action.startswith("Work on goal"))
        if applies and match["first"] in ids:
            found.append(ids[match["first"]])
    return found


def _action_plan(tactical: TacticalResult) -> list[ActionItem]:
    actions = list(dict.fromkeys(tactical.actions))
    ids = {action: f"action-{index}" for index, action in enumerate(actions, start=1)}
    return [
        ActionItem(
            id=f"action-{index}",
            title=action[:100],
            description=action,
            priority=Priority.HIGH if index <= 3 else Priority.MEDIUM,
            estimated_time=tactical.estimates.get(action, "1 week"),
            dependencies=_prerequisites(action, tactical.dependencies, ids),
        )
        for index, action in enumerate(actions, start=1)
    ]


def _reasoning_path(inputs: SynthesisInput) -> list[ReasoningStep]:
    stages = [
        ("analyzer", inputs.analysis),
        ("strategist", inputs.strategy),
        ("tactical", inputs.tactical),
        ("risk", inputs.risks),
    ]
    return [
        ReasoningStep(
            agent=agent,
            step=step,
            output=result.model_dump(mode="json"),
            reasoning=inputs.stage_reasoning.get(agent) or f"{agent.capitalize()} analysis completed",
        )
        for step, (agent, result) in enumerate(stages, start=1)
    ]
