"""Tests for the BaseAgent contract and JSON extraction."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from conftest import make_completion
from insight.agents.base import BaseAgent, extract_json, project_completeness
from insight.errors import LLMError, RateLimitExceeded
from insight.schemas.agents import AgentConfig
from insight.shared.llm_client import DryRunClient


class SampleOutput(BaseModel):
    result: str
    count: int = 0


class SampleAgent(BaseAgent):
    """Concrete test implementation of BaseAgent."""

    key = "sample"
    config = AgentConfig(name="Sample Agent", description="test")
    system_prompt = "You are a test agent."

    async def run(self, heuristic=None):
        return await self._answer(
            lambda: self._complete_with_retry("test input", lambda raw: SampleOutput(**extract_json(raw))),
            heuristic or (lambda: SampleOutput(result="heuristic")),
            confidence=lambda r: 0.8 if r.result != "heuristic" else 0.4,
            reasoning=lambda r: f"got {r.result}",
        )


class TestBaseAgent:
    @pytest.mark.asyncio
    async def test_llm_path_returns_parsed_output(self, mock_llm_client, metrics) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=make_completion('{"result": "success", "count": 42}')
        )

        response = await SampleAgent(mock_llm_client, metrics).run()

        assert response.success
        assert response.used_llm
        assert response.data.count == 42
        assert response.confidence == 0.8
        assert response.reasoning == "got success"
        assert metrics.get_metrics_by_name("agent.sample.success")
        assert metrics.get_metrics_by_name("agent.sample.duration")

    @pytest.mark.asyncio
    async def test_retries_once_on_bad_json(self, mock_llm_client) -> None:
        create = AsyncMock(side_effect=[
            make_completion("Sure! Here is the result: it worked."),
            make_completion('{"result": "fixed"}'),
        ])
        mock_llm_client._client.chat.completions.create = create

        response = await SampleAgent(mock_llm_client).run()

        assert response.data.result == "fixed"
        assert create.call_count == 2
        retry_prompt = create.call_args_list[1].kwargs["messages"][1]["content"]
        assert "Assistant's previous response" in retry_prompt

    @pytest.mark.asyncio
    async def test_falls_back_when_retry_also_fails(self, mock_llm_client, metrics) -> None:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            return_value=make_completion("no json here")
        )

        response = await SampleAgent(mock_llm_client, metrics).run()

        assert response.success
        assert not response.used_llm
        assert response.data.result == "heuristic"
        assert metrics.get_metrics_by_name("agent.sample.fallback")

    @pytest.mark.asyncio
    async def test_dry_run_uses_heuristic(self) -> None:
        client = DryRunClient()
        response = await SampleAgent(client).run()
        assert response.data.result == "heuristic"
        assert list(client.calls) == ["You are a test agent."]
        assert client.call_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_propagates(self, metrics) -> None:
        client = DryRunClient()
        client.complete = AsyncMock(side_effect=RateLimitExceeded("slow down", retry_after=30))

        with pytest.raises(RateLimitExceeded):
            await SampleAgent(client, metrics).run()
        assert metrics.get_metrics_by_name("agent.sample.rate_limited")

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_failed_response(self, metrics) -> None:
        def broken():
            raise RuntimeError("boom")

        response = await SampleAgent(DryRunClient(), metrics).run(heuristic=broken)

        assert not response.success
        assert response.error == "boom"
        assert response.data is None
        assert metrics.get_metrics_by_name("agent.sample.error")

    @pytest.mark.asyncio
    async def test_llm_error_is_a_fallback_not_a_failure(self) -> None:
        client = DryRunClient()
        client.complete = AsyncMock(side_effect=LLMError("provider down"))
        response = await SampleAgent(client).run()
        assert response.success
        assert response.data.result == "heuristic"

    def test_name(self) -> None:
        assert SampleAgent(DryRunClient()).name == "Sample Agent"


class TestProjectCompleteness:
    def test_full_project(self, sample_project) -> None:
        assert project_completeness(sample_project) == 1.0

    def test_without_optional_fields(self, sample_project) -> None:
        project = sample_project.model_copy(update={"timeline": None, "constraints": []})
        assert project_completeness(project) == 0.8


class TestExtractJson:
    def test_nested_json(self) -> None:
        text = json.dumps({"a": {"b": [1, 2, 3]}})
        assert extract_json(text)["a"]["b"] == [1, 2, 3]

    def test_json_with_whitespace(self) -> None:
        assert extract_json('  \n  {"key": "value"}  \n  ')["key"] == "value"

    def test_json_in_markdown_code_fence(self) -> None:
        text = 'Here you go:\n\n```json\n{"result": "fenced"}\n```\n'
        assert extract_json(text)["result"] == "fenced"

    def test_json_with_trailing_text(self) -> None:
        assert extract_json('{"a": 1}\n\nHope that helps!')["a"] == 1

    def test_json_embedded_in_prose(self) -> None:
        text = 'Analysis below:\n{"result": "inline", "count": 7}\nThanks.'
        assert extract_json(text)["count"] == 7

    def test_plain_prose_raises(self) -> None:
        with pytest.raises(ValueError, match="Could not extract JSON"):
            extract_json("# Analysis\n\nThe project looks solid.")


class TestAgentContract:
    def test_base_agent_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            BaseAgent(DryRunClient())

    def test_subclass_without_system_prompt_cannot_be_built(self) -> None:
        class NoPrompt(BaseAgent):
            key = "no-prompt"
            config = AgentConfig(name="No Prompt", description="test")

        with pytest.raises(TypeError):
            NoPrompt(DryRunClient())

    def test_class_attribute_satisfies_system_prompt(self) -> None:
        assert SampleAgent(DryRunClient()).system_prompt == "You are a test agent."


class TestDryRunClient:
    @pytest.mark.asyncio
    async def test_history_is_bounded(self) -> None:
        client = DryRunClient(history=5)
        for i in range(12):
            with pytest.raises(LLMError):
                await client.complete(system=f"prompt {i}\nmore", user_message="hi")

        assert client.call_count == 12
        assert list(client.calls) == [f"prompt {i}" for i in range(7, 12)]
