"""Models for data fetched from the external data sources."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class EnrichedData(BaseModel):
    """One data source's contribution to the advisory flow."""

    source: str
    data: Any
    relevance_score: float
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: dict[str, Any] = {}


class GitHubTrend(BaseModel):
    repository: str
    stars: int
    language: str = "Unknown"
    description: str = ""
    url: str = ""
    trend_score: float = 0.0


class NewsArticle(BaseModel):
    title: str
    description: str = ""
    url: str = ""
    published_at: datetime
    source: str = ""
    relevance: float = 0.0


class WeatherData(BaseModel):
    location: str
    temperature: float
    condition: str
    forecast: list[str] = []
    recommendations: list[str] = []
