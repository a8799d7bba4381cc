"""Strategist — high-level strategy from the analysis."""

from __future__ import annotations

import logging

from insight.agents.base import BaseAgent, extract_json, project_completeness
from insight.agents.strategist.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import AgentConfig, AgentResponse, AnalysisResult, StrategyResult
from insight.schemas.project import Priority, ProjectCategory, ProjectPayload

logger = logging.getLogger(__name__)


class StrategistAgent(BaseAgent):
    key = "strategist"
    config = AgentConfig(
        name="Strategist",
        description="Generates high-level strategic recommendations",
        temperature=0.6,
        max_tokens=2000,
    )
    system_prompt = SYSTEM_PROMPT

    async def strategize(self, project: ProjectPayload, analysis: AnalysisResult) -> AgentResponse[StrategyResult]:
        return await self._answer(
            lambda: self._complete_with_retry(
                build_user_message(project, analysis),
                lambda raw: self._parse(raw, project, analysis),
            ),
            lambda: self.heuristic_strategize(project, analysis),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: (
                f"Generated {len(r.strategies)} strategic recommendations "
                f"with {len(r.priorities)} priority areas"
            ),
        )

    @staticmethod
    def _confidence(project: ProjectPayload, analysis: AnalysisResult) -> float:
        return (analysis.confidence + project_completeness(project)) / 2

    @classmethod
    def _parse(cls, raw: str, project: ProjectPayload, analysis: AnalysisResult) -> StrategyResult:
        data = extract_json(raw)
        data.setdefault("confidence", cls._confidence(project, analysis))
        return StrategyResult.model_validate(data)

    @classmethod
    def heuristic_strategize(cls, project: ProjectPayload, analysis: AnalysisResult) -> StrategyResult:
        return StrategyResult(
            strategies=cls._strategies(project, analysis),
            priorities=cls._priorities(project, analysis),
            timeline=suggest_timeline(project),
            resources=cls._resources(project, analysis),
            confidence=cls._confidence(project, analysis),
        )

    @staticmethod
    def _strategies(project: ProjectPayload, analysis: AnalysisResult) -> list[str]:
        strategies = []
        if analysis.strengths:
            strategies.append(f"Build on identified strengths: {analysis.strengths[0]}")
        if analysis.weaknesses:
            strategies.append(f"Address critical weakness: {analysis.weaknesses[0]}")
        if analysis.opportunities:
            strategies.append(f"Pursue opportunity: {analysis.opportunities[0]}")
        if analysis.threats:
            strategies.append(f"Mitigate threat: {analysis.threats[0]}")

        if project.category == ProjectCategory.TECH:
            strategies.append("Adopt agile development methodology")
            strategies.append("Implement continuous integration and deployment")
        elif project.category == ProjectCategory.BUSINESS:
            strategies.append("Develop comprehensive business plan")
            strategies.append("Conduct market research and validation")
        return strategies

    @staticmethod
    def _priorities(project: ProjectPayload, analysis: AnalysisResult) -> list[str]:
        priorities = []
        high = [g for g in project.goals if g.priority == Priority.HIGH]
        if high:
            priorities.append(f"Focus on high-priority goals: {len(high)} identified")
        critical = [w for w in analysis.weaknesses if "critical" in w.lower() or "missing" in w.lower()]
        if critical:
            priorities.append(f"Address critical gaps: {critical[0]}")
        if analysis.opportunities:
            priorities.append(f"Pursue quick wins: {analysis.opportunities[0]}")
        return priorities

    @staticmethod
    def _resources(project: ProjectPayload, analysis: AnalysisResult) -> list[str]:
        by_category = {
            ProjectCategory.TECH: [
                "Development team and technical expertise",
                "Development tools and infrastructure",
            ],
            ProjectCategory.BUSINESS: [
                "Business advisors and mentors",
                "Market research and analysis tools",
            ],
            ProjectCategory.COMMUNITY: [
                "Community volunteers and organizers",
                "Venue and logistics support",
            ],
        }
        resources = list(by_category.get(project.category, []))
        if any("timeline" in w for w in analysis.weaknesses):
            resources.append("Project management tools and expertise")
        return resources


def suggest_timeline(project: ProjectPayload) -> str:
    days = project.timeline.duration_days if project.timeline else None
    if days is None:
        return "Establish clear timeline with defined milestones"
    if days < 30:
        return "Sprint-based approach with weekly milestones"
    if days < 90:
        return "Phased approach with monthly milestones"
    return "Quarterly milestones with regular reviews"
