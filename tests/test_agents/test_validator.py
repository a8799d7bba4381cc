"""Tests for the Validator agent."""

from __future__ import annotations

import json

import pytest

from insight.agents.validator.agent import ValidatorAgent
from insight.schemas.project import Goal


class TestHeuristicValidate:
    def test_complete_project_is_valid(self, sample_project) -> None:
        result = ValidatorAgent.heuristic_validate(sample_project)
        assert result.is_valid
        assert result.errors == []
        assert result.confidence == 1.0
        # goal_2 is not measurable
        assert any("measurable" in s for s in result.suggestions)

    def test_short_name_is_an_error(self, sample_project) -> None:
        project = sample_project.model_copy(update={"project_name": "Go"})
        result = ValidatorAgent.heuristic_validate(project)
        assert not result.is_valid
        assert result.errors[0].field == "project_name"
        assert result.errors[0].message == "Project name must be at least 3 characters long"

    def test_short_goal_is_only_a_warning(self, sample_project) -> None:
        project = sample_project.model_copy(update={"goals": [Goal(id="g", description="Ship", measurable=True)]})
        result = ValidatorAgent.heuristic_validate(project)
        assert result.is_valid
        assert result.errors[0].severity == "warning"
        assert result.errors[0].field == "goals[0].description"

    def test_missing_optional_fields_become_suggestions(self, sample_project) -> None:
        project = sample_project.model_copy(update={"timeline": None, "constraints": []})
        result = ValidatorAgent.heuristic_validate(project)
        assert result.is_valid
        assert "Consider adding constraints or limitations to help with planning" in result.suggestions
        assert "Adding a timeline with start and end dates would improve planning" in result.suggestions


class TestValidatorAgent:
    @pytest.mark.asyncio
    async def test_verdict_follows_issue_severity(self, scripted_llm, sample_project) -> None:
        client = scripted_llm(json.dumps({
            "is_valid": False,
            "errors": [{"field": "goals", "message": "Could be sharper", "severity": "warning"}],
            "suggestions": [],
            "confidence": 0.85,
        }))

        response = await ValidatorAgent(client).validate(sample_project)

        assert response.used_llm
        assert response.data.is_valid
        assert response.reasoning == "Project data is valid"

    @pytest.mark.asyncio
    async def test_duplicate_goals_are_removed_before_validation(self, dry_client, sample_project) -> None:
        goals = sample_project.goals + [Goal(id="goal_9", description=sample_project.goals[0].description.upper())]
        project = sample_project.model_copy(update={"goals": goals})

        response = await ValidatorAgent(dry_client).validate(project)

        measurable_hints = [s for s in response.data.suggestions if "measurable" in s]
        assert len(measurable_hints) == 1

    @pytest.mark.asyncio
    async def test_reasoning_counts_blocking_issues(self, dry_client, sample_project) -> None:
        project = sample_project.model_copy(update={"project_name": "X"})
        response = await ValidatorAgent(dry_client).validate(project)
        assert response.reasoning == "Found 1 blocking issue(s)"
