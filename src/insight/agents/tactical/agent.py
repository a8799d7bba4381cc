"""Tactical planner — actions, ordering and estimates."""

from __future__ import annotations

import logging

from insight.agents.base import BaseAgent, extract_json
from insight.agents.tactical.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import AgentConfig, AgentResponse, StrategyResult, TacticalResult
from insight.schemas.project import Priority, ProjectPayload

logger = logging.getLogger(__name__)

SETUP_ACTIONS = [
    "Define project scope and objectives",
    "Set up project management tools and tracking",
    "Assemble project team and assign roles",
]


class TacticalAgent(BaseAgent):
    key = "tactical"
    config = AgentConfig(
        name="Tactical Planner",
        description="Breaks strategy into concrete, sequenced actions",
        temperature=0.3,
        max_tokens=1500,
    )
    system_prompt = SYSTEM_PROMPT

    async def plan(self, project: ProjectPayload, strategy: StrategyResult) -> AgentResponse[TacticalResult]:
        return await self._answer(
            lambda: self._complete_with_retry(
                build_user_message(project, strategy),
                lambda raw: self._parse(raw, strategy),
            ),
            lambda: self.heuristic_plan(project, strategy),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: f"Planned {len(r.actions)} actions with {len(r.dependencies)} dependencies",
        )

    @staticmethod
    def _parse(raw: str, strategy: StrategyResult) -> TacticalResult:
        data = extract_json(raw)
        data.setdefault("confidence", strategy.confidence * 0.9)
        result = TacticalResult.model_validate(data)
        # Models sometimes repeat an action; ids and estimates are keyed by its text
        result.actions = list(dict.fromkeys(result.actions))
        result.sequence = list(dict.fromkeys(result.sequence)) or sequence_actions(result.actions)
        return result

    @classmethod
    def heuristic_plan(cls, project: ProjectPayload, strategy: StrategyResult) -> TacticalResult:
        actions = cls._actions(project, strategy)
        return TacticalResult(
            actions=actions,
            sequence=sequence_actions(actions),
            dependencies=cls._dependencies(actions),
            estimates=cls._estimates(actions, project),
            confidence=strategy.confidence * 0.9,
        )

    @staticmethod
    def _actions(project: ProjectPayload, strategy: StrategyResult) -> list[str]:
        actions = list(SETUP_ACTIONS)
        for text in strategy.strategies:
            if "agile" in text:
                actions.append("Set up sprint planning and backlog")
                actions.append("Establish daily standup meetings")
            if "market research" in text:
                actions.append("Conduct competitor analysis")
                actions.append("Survey target audience")
        for index, goal in enumerate(project.goals, start=1):
            actions.append(f"Work on goal {index}: {goal.description[:50]}...")
        if any(g.priority == Priority.HIGH for g in project.goals):
            actions.append("Focus on high-priority goals first")
        # Several strategies can trigger the same follow-up
        return list(dict.fromkeys(actions))

    @staticmethod
    def _dependencies(actions: list[str]) -> list[str]:
        dependencies = []
        setup = next((a for a in actions if "Set up project management" in a), None)
        team = next((a for a in actions if "Assemble project team" in a), None)
        if setup and team:
            dependencies.append(f"{team} should happen before {setup}")
        scope = next((a for a in actions if "Define project scope" in a), None)
        if scope and any("Work on goal" in a for a in actions):
            dependencies.append(f"{scope} must be completed before starting goal work")
        return dependencies

    @staticmethod
    def _estimates(actions: list[str], project: ProjectPayload) -> dict[str, str]:
        estimates = {}
        for action in actions:
            if "Set up" in action or "Define" in action:
                estimates[action] = "1-2 days"
            elif "Assemble" in action or "Establish" in action:
                estimates[action] = "2-3 days"
            elif "Work on goal" in action:
                estimates[action] = "1-2 weeks" if project.timeline else "2-4 weeks"
            elif "research" in action or "analysis" in action:
                estimates[action] = "1 week"
            else:
                estimates[action] = "3-5 days"
        return estimates


def sequence_actions(actions: list[str]) -> list[str]:
    """Setup actions first, everything else after, each group in original order."""
    def is_setup(action: str) -> bool:
        lowered = action.lower()
        return "set up" in lowered or "define" in lowered or "assemble" in lowered

    setup = [a for a in actions if is_setup(a)]
    return setup + [a for a in actions if not is_setup(a)]
