"""Validator — checks a collected project before it is saved."""

from __future__ import annotations

import logging

from insight.agents.base import BaseAgent, extract_json
from insight.agents.validator.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import AgentConfig, AgentResponse, ValidationIssue, ValidationResult
from insight.schemas.project import ProjectPayload, dedupe_goals

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("project_name", "category", "goals", "owner")


class ValidatorAgent(BaseAgent):
    key = "validator"
    config = AgentConfig(
        name="Validator",
        description="Validates collected project data for completeness and consistency",
        temperature=0.1,
        max_tokens=800,
    )
    system_prompt = SYSTEM_PROMPT

    async def validate(self, project: ProjectPayload) -> AgentResponse[ValidationResult]:
        project = project.model_copy(update={"goals": dedupe_goals(project.goals)})
        return await self._answer(
            lambda: self._complete_with_retry(build_user_message(project), self._parse),
            lambda: self.heuristic_validate(project),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: (
                "Project data is valid"
                if r.is_valid
                else f"Found {sum(1 for e in r.errors if e.severity == 'error')} blocking issue(s)"
            ),
        )

    @staticmethod
    def _parse(raw: str) -> ValidationResult:
        result = ValidationResult.model_validate(extract_json(raw))
        # Trust the issues, not the model's verdict
        result.is_valid = not any(e.severity == "error" for e in result.errors)
        return result

    @staticmethod
    def heuristic_validate(project: ProjectPayload) -> ValidationResult:
        errors: list[ValidationIssue] = []
        suggestions: list[str] = []

        if len(project.project_name.strip()) < 3:
            errors.append(ValidationIssue(
                field="project_name", message="Project name must be at least 3 characters long",
            ))
        if not project.category:
            errors.append(ValidationIssue(field="category", message="Project category is required"))
        if not project.goals:
            errors.append(ValidationIssue(field="goals", message="At least one goal is required"))
        for index, goal in enumerate(project.goals):
            if len(goal.description.strip()) < 10:
                errors.append(ValidationIssue(
                    field=f"goals[{index}].description",
                    message="Goal description should be at least 10 characters",
                    severity="warning",
                ))
            if not goal.measurable:
                suggestions.append(
                    f'Consider making goal "{goal.description[:50]}..." measurable with specific metrics'
                )
        if project.owner is None or not project.owner.name.strip():
            errors.append(ValidationIssue(field="owner", message="Project owner name is required"))
        if not project.constraints:
            suggestions.append("Consider adding constraints or limitations to help with planning")
        if project.timeline is None:
            suggestions.append("Adding a timeline with start and end dates would improve planning")

        completed = sum(1 for field in REQUIRED_FIELDS if getattr(project, field))
        return ValidationResult(
            is_valid=not any(e.severity == "error" for e in errors),
            errors=errors,
            suggestions=suggestions,
            confidence=completed / len(REQUIRED_FIELDS),
        )
