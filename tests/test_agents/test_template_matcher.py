"""Tests for the Template Matcher agent."""

from __future__ import annotations

import json

import pytest

from insight.agents.template_matcher.agent import TemplateMatcherAgent


class TestHeuristicMatch:
    def test_category_and_keywords(self) -> None:
        result = TemplateMatcherAgent.heuristic_match(
            "Organize a community event for the neighbourhood", "community",
        )
        assert result.template_id == "community-event"
        assert result.confidence > 0.5
        assert "constraints" in result.suggested_fields

    def test_keywords_alone(self) -> None:
        result = TemplateMatcherAgent.heuristic_match("An educational program with learning initiatives")
        assert result.template_id == "educational-program"

    def test_weak_match_uses_default(self) -> None:
        result = TemplateMatcherAgent.heuristic_match("xyz qq")
        assert result.template_id == "tech-startup"
        assert result.confidence == 0.5
        assert result.reasoning == "No strong match found, using default template"


class TestTemplateMatcherAgent:
    @pytest.mark.asyncio
    async def test_llm_choice(self, scripted_llm) -> None:
        client = scripted_llm(json.dumps({
            "template_id": "creative-project", "confidence": 0.92, "reasoning": "Art exhibition",
        }))

        response = await TemplateMatcherAgent(client).match("A photography exhibition")

        assert response.used_llm
        assert response.data.template_id == "creative-project"
        assert response.confidence == 0.92
        assert response.data.suggested_fields == ["project_name", "goals", "owner"]

    @pytest.mark.asyncio
    async def test_unknown_template_falls_back(self, scripted_llm) -> None:
        client = scripted_llm(
            json.dumps({"template_id": "moon-mission"}),
            json.dumps({"template_id": "moon-mission"}),
        )

        response = await TemplateMatcherAgent(client).match("Organize a community event", "community")

        assert not response.used_llm
        assert response.data.template_id == "community-event"

    @pytest.mark.asyncio
    async def test_dry_run(self, dry_client) -> None:
        response = await TemplateMatcherAgent(dry_client).match("Business planning for strategic initiatives")
        assert response.success
        assert response.data.template_id == "business-strategy"
