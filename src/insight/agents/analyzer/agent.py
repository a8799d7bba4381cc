"""Analyzer — patterns and a SWOT breakdown of one project."""

from __future__ import annotations

import logging

from insight.agents.analyzer.prompts import SYSTEM_PROMPT, build_user_message
from insight.agents.base import BaseAgent, extract_json, project_completeness
from insight.schemas.agents import AgentConfig, AgentResponse, AnalysisResult
from insight.schemas.project import Priority, ProjectCategory, ProjectPayload

logger = logging.getLogger(__name__)


class AnalyzerAgent(BaseAgent):
    key = "analyzer"
    config = AgentConfig(
        name="Analyzer",
        description="Deep-dives into project data and identifies patterns",
        temperature=0.4,
        max_tokens=1500,
    )
    system_prompt = SYSTEM_PROMPT

    async def analyze(self, project: ProjectPayload) -> AgentResponse[AnalysisResult]:
        return await self._answer(
            lambda: self._complete_with_retry(
                build_user_message(project), lambda raw: self._parse(raw, project),
            ),
            lambda: self.heuristic_analyze(project),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: (
                f"Identified {len(r.patterns)} patterns, {len(r.strengths)} strengths, "
                f"and {len(r.opportunities)} opportunities"
            ),
        )

    @staticmethod
    def _parse(raw: str, project: ProjectPayload) -> AnalysisResult:
        data = extract_json(raw)
        data.setdefault("confidence", project_completeness(project))
        return AnalysisResult.model_validate(data)

    @classmethod
    def heuristic_analyze(cls, project: ProjectPayload) -> AnalysisResult:
        return AnalysisResult(
            patterns=cls._patterns(project),
            strengths=cls._strengths(project),
            weaknesses=cls._weaknesses(project),
            opportunities=cls._opportunities(project),
            threats=cls._threats(project),
            confidence=project_completeness(project),
        )

    @staticmethod
    def _patterns(project: ProjectPayload) -> list[str]:
        patterns = []
        if len(project.goals) >= 3:
            patterns.append("Multiple well-defined goals suggest comprehensive planning")
        if project.goals and all(g.measurable for g in project.goals):
            patterns.append("All goals are measurable, indicating strong planning discipline")
        if project.category == ProjectCategory.TECH and any("api" in g.description.lower() for g in project.goals):
            patterns.append("Tech project with API focus suggests integration-heavy architecture")

        days = project.timeline.duration_days if project.timeline else None
        if days is not None:
            if days < 30:
                patterns.append("Short timeline suggests agile, iterative approach")
            elif days > 180:
                patterns.append("Extended timeline allows for comprehensive planning and execution")
        return patterns

    @staticmethod
    def _strengths(project: ProjectPayload) -> list[str]:
        strengths = []
        if len(project.goals) >= 3:
            strengths.append("Clear and multiple goals provide direction")
        if project.owner and project.owner.name:
            strengths.append("Designated project owner ensures accountability")
        if project.constraints:
            strengths.append("Well-defined constraints help manage scope")
        if project.timeline:
            strengths.append("Timeline provides structure and deadlines")
        if any(g.priority == Priority.HIGH for g in project.goals):
            strengths.append("Priority-based goal structure enables focus")
        return strengths

    @staticmethod
    def _weaknesses(project: ProjectPayload) -> list[str]:
        weaknesses = []
        if len(project.goals) < 2:
            weaknesses.append("Limited number of goals may indicate incomplete planning")
        if not any(g.measurable for g in project.goals):
            weaknesses.append("Lack of measurable goals makes progress tracking difficult")
        if not project.timeline:
            weaknesses.append("Missing timeline makes scheduling and planning challenging")
        if not project.constraints:
            weaknesses.append("No defined constraints may lead to scope creep")
        if all(g.priority == Priority.MEDIUM for g in project.goals):
            weaknesses.append("Lack of priority differentiation may lead to inefficient resource allocation")
        return weaknesses

    @staticmethod
    def _opportunities(project: ProjectPayload) -> list[str]:
        by_category = {
            ProjectCategory.TECH: [
                "Leverage modern development tools and frameworks",
                "Consider open-source solutions to accelerate development",
            ],
            ProjectCategory.BUSINESS: [
                "Explore partnerships and collaborations",
                "Consider market research and competitive analysis",
            ],
            ProjectCategory.COMMUNITY: [
                "Engage with local community organizations",
                "Leverage social media for outreach",
            ],
        }
        opportunities = list(by_category.get(project.category, []))
        if len(project.goals) > 3:
            opportunities.append("Multiple goals allow for phased implementation")
        return opportunities

    @staticmethod
    def _threats(project: ProjectPayload) -> list[str]:
        threats = []
        if not project.timeline:
            threats.append("Unclear timeline may lead to delays and missed deadlines")
        if any(c.impact == Priority.HIGH for c in project.constraints):
            threats.append("High-impact constraints may significantly limit project scope")
        if len(project.goals) > 5:
            threats.append("Too many goals may lead to resource dilution")
        if project.category == ProjectCategory.TECH and not any(
            "security" in g.description.lower() for g in project.goals
        ):
            threats.append("Security considerations may be overlooked")
        return threats
