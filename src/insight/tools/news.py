"""News articles related to the project (NewsAPI)."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import httpx

from insight.schemas.project import ProjectCategory, ProjectPayload
from insight.schemas.tools import EnrichedData, NewsArticle
from insight.tools.base import DataTool

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 100


def build_query(project: ProjectPayload) -> str:
    keywords = " ".join(g.description for g in project.goals)
    return f"{project.category.value} {keywords}"[:MAX_QUERY_LENGTH]


def article_relevance(title: str, description: str, published_at: datetime, query: str) -> float:
    q = query.lower()
    score = 0.0
    if q in title.lower():
        score += 0.5
    if q in description.lower():
        score += 0.3
    now = datetime.now(published_at.tzinfo or None)
    if published_at > now - timedelta(days=7):
        score += 0.2
    return min(score, 1.0)


def mock_articles(query: str) -> list[NewsArticle]:
    now = datetime.now(timezone.utc)
    return [
        NewsArticle(
            title=f"Latest trends in {query}",
            description=f"Recent developments and insights about {query} in the current market.",
            url="https://example.com/news/1",
            published_at=now,
            source="Tech News",
            relevance=0.8,
        ),
        NewsArticle(
            title=f"Industry analysis: {query}",
            description=f"Comprehensive analysis of {query} and its impact on the industry.",
            url="https://example.com/news/2",
            published_at=now - timedelta(days=1),
            source="Business Weekly",
            relevance=0.7,
        ),
    ]


class NewsTool(DataTool):
    name = "news"
    description = "Fetches relevant news articles based on project category and goals"
    cache_ttl = 1800

    def relevance_score(self, project: ProjectPayload) -> float:
        if project.category in (ProjectCategory.BUSINESS, ProjectCategory.FINANCE, ProjectCategory.TECH):
            return 0.8
        return 0.5

    def cache_key(self, project: ProjectPayload) -> str:
        return f"news:{build_query(project)}"

    async def _fetch(self, project: ProjectPayload, http: httpx.AsyncClient) -> EnrichedData:
        query = build_query(project)
        articles = await self.fetch_articles(http, query)
        return EnrichedData(
            source=self.name,
            data=[a.model_dump(mode="json") for a in articles],
            relevance_score=self.relevance_score(project),
            metadata={"query": query, "count": len(articles)},
        )

    async def fetch_articles(self, http: httpx.AsyncClient, query: str) -> list[NewsArticle]:
        """Search NewsAPI; falls back to canned articles without a key or on any error."""
        if not self.api.api_key:
            logger.warning("News API key not configured, returning mock data")
            return mock_articles(query)

        try:
            response = await http.get(
                f"{self.api.base_url.rstrip('/')}/everything",
                params={"q": query, "sortBy": "relevancy", "pageSize": 10},
                headers={"X-Api-Key": self.api.api_key},
            )
            response.raise_for_status()
            raw_articles = response.json().get("articles", [])
            articles = []
            for item in raw_articles:
                published = datetime.fromisoformat(item["publishedAt"].replace("Z", "+00:00"))
                title = item.get("title") or ""
                description = item.get("description") or ""
                articles.append(NewsArticle(
                    title=title,
                    description=description,
                    url=item.get("url", ""),
                    published_at=published,
                    source=(item.get("source") or {}).get("name", ""),
                    relevance=article_relevance(title, description, published, query),
                ))
            return articles
        except (httpx.HTTPError, ValueError, KeyError, AttributeError, TypeError) as exc:
            logger.error("News API error, returning mock data: %s", exc)
            return mock_articles(query)
