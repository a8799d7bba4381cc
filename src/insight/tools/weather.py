"""Current weather for event planning (OpenWeatherMap)."""

from __future__ import annotations

import logging

import httpx

from insight.schemas.project import ProjectCategory, ProjectPayload
from insight.schemas.tools import EnrichedData, WeatherData
from insight.tools.base import DataTool

logger = logging.getLogger(__name__)

KNOWN_LOCATIONS = ("new york", "london", "san francisco", "tokyo", "paris")
DEFAULT_LOCATION = "New York"


def detect_location(project: ProjectPayload) -> str:
    text = project.text_blob()
    found = next((loc for loc in KNOWN_LOCATIONS if loc in text), None)
    return found.title() if found else DEFAULT_LOCATION


def weather_recommendations(temperature: float, condition: str) -> list[str]:
    condition = condition.lower()
    recommendations = []
    if temperature < 10:
        recommendations.append("Cold weather - consider indoor venue")
    elif temperature > 30:
        recommendations.append("Hot weather - ensure adequate cooling")
    if "rain" in condition:
        recommendations.append("Rain expected - have indoor backup plan")
    if "clear" in condition or "sun" in condition:
        recommendations.append("Good weather for outdoor events")
    return recommendations or ["Weather conditions are favorable"]


def mock_weather(location: str) -> WeatherData:
    return WeatherData(
        location=location,
        temperature=22,
        condition="Clear",
        forecast=["Sunny", "Partly Cloudy", "Clear"],
        recommendations=["Good weather for outdoor activities", "Consider indoor backup plan"],
    )


class WeatherTool(DataTool):
    name = "weather"
    description = "Fetches weather data and forecasts for event planning"
    cache_ttl = 1800

    def relevance_score(self, project: ProjectPayload) -> float:
        if project.category == ProjectCategory.COMMUNITY:
            return 0.9
        goals = " ".join(g.description.lower() for g in project.goals)
        if "event" in goals or "outdoor" in goals or "venue" in goals:
            return 0.8
        return 0.3

    def cache_key(self, project: ProjectPayload) -> str:
        return f"weather:{detect_location(project)}"

    async def _fetch(self, project: ProjectPayload, http: httpx.AsyncClient) -> EnrichedData:
        location = detect_location(project)
        weather = await self.fetch_weather(http, location)
        return EnrichedData(
            source=self.name,
            data=weather.model_dump(mode="json"),
            relevance_score=self.relevance_score(project),
            metadata={"location": location},
        )

    async def fetch_weather(self, http: httpx.AsyncClient, location: str) -> WeatherData:
        if not self.api.api_key:
            logger.warning("Weather API key not configured, returning mock data")
            return mock_weather(location)

        try:
            response = await http.get(
                f"{self.api.base_url.rstrip('/')}/weather",
                params={"q": location, "appid": self.api.api_key, "units": "metric"},
            )
            response.raise_for_status()
            payload = response.json()
            temperature = float(payload["main"]["temp"])
            condition = payload["weather"][0]["main"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as exc:
            logger.error("Weather API error, returning mock data: %s", exc)
            return mock_weather(location)

        return WeatherData(
            location=location,
            temperature=temperature,
            condition=condition,
            forecast=[condition],
            recommendations=weather_recommendations(temperature, condition),
        )
