"""GitHub trending repositories."""

from __future__ import annotations

import logging

import httpx

from insight.errors import ExternalAPIError
from insight.schemas.project import ProjectCategory, ProjectPayload
from insight.schemas.tools import EnrichedData, GitHubTrend
from insight.tools.base import DataTool

logger = logging.getLogger(__name__)

TECH_KEYWORDS = ("javascript", "typescript", "python", "react", "node", "api")


def trend_score(stars: int) -> float:
    return min(stars / 10_000, 1.0) * 100


def detect_language(project: ProjectPayload) -> str | None:
    text = project.text_blob()
    return next((kw for kw in TECH_KEYWORDS if kw in text), None)


class GitHubTool(DataTool):
    name = "github"
    description = "Fetches trending repositories related to the project's technologies"
    cache_ttl = 3600

    def relevance_score(self, project: ProjectPayload) -> float:
        if project.category == ProjectCategory.TECH:
            return 0.9
        if project.category == ProjectCategory.BUSINESS:
            return 0.6
        return 0.3

    def cache_key(self, project: ProjectPayload) -> str:
        return f"github:{project.category.value}"

    async def _fetch(self, project: ProjectPayload, http: httpx.AsyncClient) -> EnrichedData:
        language = detect_language(project)
        trends = await self.fetch_trends(http, language)
        return EnrichedData(
            source=self.name,
            data=[t.model_dump(mode="json") for t in trends],
            relevance_score=self.relevance_score(project),
            metadata={"language": language, "count": len(trends)},
        )

    async def fetch_trends(self, http: httpx.AsyncClient, language: str | None = None) -> list[GitHubTrend]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.api.api_key:
            headers["Authorization"] = f"token {self.api.api_key}"
        params = {
            "q": f"language:{language}" if language else "stars:>1000",
            "sort": "stars",
            "order": "desc",
            "per_page": 10,
        }
        try:
            response = await http.get(
                f"{self.api.base_url.rstrip('/')}/search/repositories",
                params=params,
                headers=headers,
            )
            response.raise_for_status()
            items = response.json().get("items", [])
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("GitHub API error: %s", exc)
            raise ExternalAPIError("GitHub", "Failed to fetch trending repositories", details=str(exc)) from exc

        return [
            GitHubTrend(
                repository=item.get("full_name", ""),
                stars=item.get("stargazers_count") or 0,
                language=item.get("language") or "Unknown",
                description=item.get("description") or "",
                url=item.get("html_url", ""),
                trend_score=trend_score(item.get("stargazers_count") or 0),
            )
            for item in items
        ]
