"""Tool selection and the concurrent external-data fetch."""

from __future__ import annotations

import asyncio
import logging

import httpx

from insight.memory.cache_manager import CacheManager
from insight.schemas.config import AppConfig
from insight.schemas.project import ProjectPayload
from insight.schemas.tools import EnrichedData
from insight.tools.base import DataTool
from insight.tools.github import GitHubTool
from insight.tools.news import NewsTool
from insight.tools.weather import WeatherTool

logger = logging.getLogger(__name__)

MIN_RELEVANCE = 0.3
DEFAULT_TOOL_LIMIT = 2

TOOL_CLASSES: dict[str, type[DataTool]] = {
    "github": GitHubTool,
    "news": NewsTool,
    "weather": WeatherTool,
}


def build_tools(
    config: AppConfig,
    cache: CacheManager,
    *,
    http: httpx.AsyncClient | None = None,
) -> list[DataTool]:
    """Instantiate every tool enabled in config."""
    tools = []
    for name, cls in TOOL_CLASSES.items():
        if not config.tool_enabled(name):
            logger.info("Tool %s disabled in config", name)
            continue
        api = getattr(config.external_apis, name)
        tools.append(cls(api, cache, http_config=config.external_apis, http=http))
    return tools


def select_relevant_tools(
    tools: list[DataTool],
    project: ProjectPayload,
    limit: int = DEFAULT_TOOL_LIMIT,
) -> list[DataTool]:
    """Tools scoring above the relevance floor, best first, at most ``limit``."""
    scored = [(tool.relevance_score(project), tool) for tool in tools]
    scored = [pair for pair in scored if pair[0] > MIN_RELEVANCE]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [tool for _, tool in scored[:limit]]


async def fetch_external_data(
    tools: list[DataTool],
    project: ProjectPayload,
    limit: int = DEFAULT_TOOL_LIMIT,
) -> list[EnrichedData]:
    """Fetch from the selected tools concurrently; failed sources are dropped."""
    selected = select_relevant_tools(tools, project, limit)
    if not selected:
        return []
    logger.info("Fetching external data from: %s", ", ".join(t.name for t in selected))

    results = await asyncio.gather(*(t.fetch(project) for t in selected), return_exceptions=True)
    data = []
    for tool, result in zip(selected, results):
        if isinstance(result, BaseException):
            logger.warning("Tool %s failed: %s", tool.name, result)
            continue
        data.append(result)
    return data
