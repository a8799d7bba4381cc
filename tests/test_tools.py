"""Tests for the external data tools — HTTP is served by httpx.MockTransport."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from insight.errors import ExternalAPIError
from insight.memory.cache_manager import CacheManager
from insight.schemas.config import AppConfig, ExternalAPI
from insight.schemas.project import Goal, ProjectCategory
from insight.shared.http_client import USER_AGENT, build_async_client
from insight.tools.github import GitHubTool, detect_language, trend_score
from insight.tools.news import NewsTool, article_relevance, build_query
from insight.tools.registry import build_tools, fetch_external_data, select_relevant_tools
from insight.tools.weather import WeatherTool, detect_location, weather_recommendations


def _http(handler) -> httpx.AsyncClient:
    return build_async_client(transport=httpx.MockTransport(handler))


GITHUB_ITEMS = {
    "items": [
        {
            "full_name": "acme/api-kit",
            "stargazers_count": 25_000,
            "language": "Python",
            "description": "API toolkit",
            "html_url": "https://github.com/acme/api-kit",
        },
        {"full_name": "acme/tiny", "stargazers_count": 1_500, "language": None, "description": None},
    ]
}


class TestGitHubTool:
    def test_helpers(self, sample_project) -> None:
        assert trend_score(5_000) == 50.0
        assert trend_score(50_000) == 100.0
        assert detect_language(sample_project) == "api"

    def test_relevance(self, sample_project, cache) -> None:
        tool = GitHubTool(ExternalAPI(base_url="https://api.github.com"), cache)
        assert tool.relevance_score(sample_project) == 0.9
        assert tool.relevance_score(sample_project.model_copy(update={"category": ProjectCategory.BUSINESS})) == 0.6
        assert tool.relevance_score(sample_project.model_copy(update={"category": ProjectCategory.CREATIVE})) == 0.3

    @pytest.mark.asyncio
    async def test_fetch_builds_search_request(self, sample_project, cache) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=GITHUB_ITEMS)

        tool = GitHubTool(ExternalAPI(base_url="https://api.github.com", api_key="gh-token"), cache, http=_http(handler))
        data = await tool.fetch(sample_project)

        request = seen[0]
        assert request.url.path == "/search/repositories"
        assert request.url.params["q"] == "language:api"
        assert request.url.params["per_page"] == "10"
        assert request.headers["Authorization"] == "token gh-token"
        assert request.headers["User-Agent"] == USER_AGENT
        assert data.source == "github"
        assert data.data[0]["trend_score"] == 100.0
        assert data.data[1]["language"] == "Unknown"
        assert data.metadata == {"language": "api", "count": 2}

    @pytest.mark.asyncio
    async def test_second_fetch_is_cached(self, sample_project, cache) -> None:
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, json=GITHUB_ITEMS)

        tool = GitHubTool(ExternalAPI(base_url="https://api.github.com"), cache, http=_http(handler))
        await tool.fetch(sample_project)
        await tool.fetch(sample_project)
        assert calls == 1
        assert "github:tech" in cache.keys("github:")

    @pytest.mark.asyncio
    async def test_http_error_raises(self, sample_project, cache) -> None:
        tool = GitHubTool(
            ExternalAPI(base_url="https://api.github.com"), cache,
            http=_http(lambda request: httpx.Response(503)),
        )
        with pytest.raises(ExternalAPIError, match="GitHub") as exc_info:
            await tool.fetch(sample_project)
        assert exc_info.value.status_code == 502


class TestNewsTool:
    def test_query_is_truncated(self, sample_project) -> None:
        goals = [Goal(id=f"g{i}", description="word " * 20) for i in range(3)]
        query = build_query(sample_project.model_copy(update={"goals": goals}))
        assert query.startswith("tech word")
        assert len(query) == 100

    def test_article_relevance(self) -> None:
        now = datetime.now(timezone.utc)
        assert article_relevance("Garden apps rise", "garden apps everywhere", now, "garden apps") == 1.0
        assert article_relevance("Other", "", now - timedelta(days=30), "garden apps") == 0.0

    @pytest.mark.asyncio
    async def test_without_key_returns_mock_articles(self, sample_project, cache) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no HTTP call expected")

        tool = NewsTool(ExternalAPI(base_url="https://newsapi.org/v2"), cache, http=_http(handler))
        data = await tool.fetch(sample_project)
        assert len(data.data) == 2
        assert data.data[0]["source"] == "Tech News"

    @pytest.mark.asyncio
    async def test_live_articles(self, sample_project, cache) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"articles": [{
                "title": "Community apps",
                "description": "d",
                "url": "https://news.example/1",
                "publishedAt": "2026-10-01T08:00:00Z",
                "source": {"name": "Daily"},
            }]})

        tool = NewsTool(ExternalAPI(base_url="https://newsapi.org/v2", api_key="nk"), cache, http=_http(handler))
        articles = await tool.fetch_articles(tool._http, "community apps")

        assert seen[0].url.path == "/v2/everything"
        assert seen[0].headers["X-Api-Key"] == "nk"
        assert articles[0].source == "Daily"
        assert articles[0].relevance >= 0.5

    @pytest.mark.asyncio
    async def test_error_falls_back_to_mock(self, cache) -> None:
        tool = NewsTool(
            ExternalAPI(base_url="https://newsapi.org/v2", api_key="nk"), cache,
            http=_http(lambda request: httpx.Response(500)),
        )
        articles = await tool.fetch_articles(tool._http, "garden")
        assert [a.title for a in articles] == ["Latest trends in garden", "Industry analysis: garden"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("published", [None, 20261001])
    async def test_unusable_publish_date_falls_back_to_mock(self, cache, published) -> None:
        article = {"title": "t", "url": "u", "publishedAt": published, "source": {"name": "Daily"}}
        tool = NewsTool(
            ExternalAPI(base_url="https://newsapi.org/v2", api_key="nk"), cache,
            http=_http(lambda request: httpx.Response(200, json={"articles": [article]})),
        )
        articles = await tool.fetch_articles(tool._http, "garden")
        assert [a.title for a in articles] == ["Latest trends in garden", "Industry analysis: garden"]


class TestWeatherTool:
    def test_detect_location(self, sample_project) -> None:
        assert detect_location(sample_project) == "New York"
        goals = [Goal(id="g", description="Host a picnic in san francisco")]
        assert detect_location(sample_project.model_copy(update={"goals": goals})) == "San Francisco"

    def test_recommendations(self) -> None:
        assert weather_recommendations(5, "Rain") == [
            "Cold weather - consider indoor venue",
            "Rain expected - have indoor backup plan",
        ]
        assert weather_recommendations(20, "Clouds") == ["Weather conditions are favorable"]

    def test_relevance(self, sample_project, cache) -> None:
        tool = WeatherTool(ExternalAPI(base_url="https://w"), cache)
        assert tool.relevance_score(sample_project.model_copy(update={"category": ProjectCategory.COMMUNITY})) == 0.9
        outdoor = [Goal(id="g", description="Run an outdoor festival")]
        assert tool.relevance_score(sample_project.model_copy(update={"goals": outdoor})) == 0.8
        assert tool.relevance_score(sample_project) == 0.3

    @pytest.mark.asyncio
    async def test_live_weather(self, cache) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["units"] == "metric"
            assert request.url.params["appid"] == "wk"
            return httpx.Response(200, json={"main": {"temp": 33.5}, "weather": [{"main": "Clear"}]})

        tool = WeatherTool(ExternalAPI(base_url="https://w", api_key="wk"), cache, http=_http(handler))
        weather = await tool.fetch_weather(tool._http, "London")

        assert weather.temperature == 33.5
        assert weather.recommendations == [
            "Hot weather - ensure adequate cooling",
            "Good weather for outdoor events",
        ]

    @pytest.mark.asyncio
    async def test_malformed_payload_falls_back_to_mock(self, cache) -> None:
        tool = WeatherTool(
            ExternalAPI(base_url="https://w", api_key="wk"), cache,
            http=_http(lambda request: httpx.Response(200, json={"weather": []})),
        )
        weather = await tool.fetch_weather(tool._http, "Paris")
        assert weather.location == "Paris"
        assert weather.condition == "Clear"


class TestRegistry:
    def test_build_tools_skips_disabled(self, cache) -> None:
        config = AppConfig(tools={"github": {"enabled": False}})
        assert [t.name for t in build_tools(config, cache)] == ["news", "weather"]

    def test_selection_orders_and_limits(self, sample_project, cache) -> None:
        tools = build_tools(AppConfig(), cache)
        selected = select_relevant_tools(tools, sample_project)
        assert [t.name for t in selected] == ["github", "news"]

    def test_selection_drops_low_relevance(self, sample_project, cache) -> None:
        project = sample_project.model_copy(update={"category": ProjectCategory.CREATIVE})
        tools = build_tools(AppConfig(), cache)
        assert [t.name for t in select_relevant_tools(tools, project, limit=3)] == ["news"]

    @pytest.mark.asyncio
    async def test_failed_source_is_dropped(self, sample_project) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "api.github.com":
                return httpx.Response(500)
            raise AssertionError("news has no key and must not call out")

        config = AppConfig()
        tools = build_tools(config, CacheManager(), http=_http(handler))
        data = await fetch_external_data(tools, sample_project)
        assert [d.source for d in data] == ["news"]
