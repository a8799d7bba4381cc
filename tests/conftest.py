"""Shared test fixtures."""

from __future__ import annotations

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from insight.memory.cache_manager import CacheManager
from insight.memory.project_store import ProjectStore
from insight.schemas.config import AppConfig, LLMConfig
from insight.schemas.project import Goal, Owner, ProjectCategory, ProjectPayload, Timeline
from insight.services import build_services
from insight.shared.llm_client import DryRunClient, LLMClient
from insight.shared.metrics import MetricsCollector


def make_completion(content: str) -> SimpleNamespace:
    """Build a fake OpenAI chat completion with the given text content."""
    message = SimpleNamespace(content=content, tool_calls=None)
    choice = SimpleNamespace(message=message)
    return SimpleNamespace(choices=[choice], usage=None)


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Return an LLMClient with a mocked OpenAI SDK underneath."""
    client = LLMClient.__new__(LLMClient)
    client.config = LLMConfig(api_key="test-key", max_retries=3)
    client._client = AsyncMock()
    client._sleep = AsyncMock()
    return client


@pytest.fixture
def scripted_llm(mock_llm_client: LLMClient):
    """Factory: make the mocked SDK answer with the given contents, in order."""
    def script(*contents: str) -> LLMClient:
        mock_llm_client._client.chat.completions.create = AsyncMock(
            side_effect=[make_completion(c) for c in contents]
        )
        return mock_llm_client
    return script


@pytest.fixture
def dry_client() -> DryRunClient:
    return DryRunClient()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def cache() -> CacheManager:
    return CacheManager(ttl_seconds=3600, max_entries=1000)


@pytest.fixture
def store(cache: CacheManager) -> ProjectStore:
    return ProjectStore(cache)


@pytest.fixture
def sample_project() -> ProjectPayload:
    return ProjectPayload(
        project_name="Community Garden App",
        category=ProjectCategory.TECH,
        goals=[
            Goal(id="goal_1", description="Launch a mobile app for 500 users", priority="high", measurable=True),
            Goal(id="goal_2", description="Build an API for plot bookings", priority="medium"),
        ],
        owner=Owner(name="Alex Doe", email="alex@example.com"),
        constraints=["Budget under $5k"],
        timeline=Timeline(start_date=date(2026, 1, 1), end_date=date(2026, 6, 30)),
    )


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Config with no API keys and all external tools disabled."""
    return AppConfig(
        llm=LLMConfig(api_key=""),
        tools={"github": {"enabled": False}, "news": {"enabled": False}, "weather": {"enabled": False}},
    )


@pytest.fixture
def services(app_config: AppConfig):
    """Full object graph backed by the dry-run client (heuristics only)."""
    return build_services(app_config, dry_run=True)
