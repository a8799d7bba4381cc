"""Configuration schema — environment variables, ``.env`` and an optional YAML overlay."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)
    allowed_origins: list[str] = ["*"]


class LLMConfig(BaseModel):
    """Settings for the OpenAI-compatible completion endpoint."""

    model: str = "gpt-4o-mini"
    api_key: str = ""
    base_url: str = ""
    max_retries: int = 3  # rate-limit retries per request; keep low for web callers
    timeout_seconds: float = 45.0


class CacheConfig(BaseModel):
    ttl_seconds: int = 3600
    max_entries: int = 10_000
    # When set, projects and insights are mirrored into this JSON file.
    store_path: str = ""


class RateLimitConfig(BaseModel):
    window_seconds: int = 900
    max_requests: int = 100


class ExternalAPI(BaseModel):
    base_url: str
    api_key: str = ""


class ExternalAPIsConfig(BaseModel):
    github: ExternalAPI = ExternalAPI(base_url="https://api.github.com")
    news: ExternalAPI = ExternalAPI(base_url="https://newsapi.org/v2")
    weather: ExternalAPI = ExternalAPI(base_url="https://api.openweathermap.org/data/2.5")
    timeout_seconds: float = 10.0


class ToolRateLimit(BaseModel):
    max_requests: int = 60
    window_seconds: int = 60


class ToolRetry(BaseModel):
    """Declared per tool; only the LLM client actually retries."""

    max_attempts: int = 3
    backoff_seconds: float = 1.0


class ToolConfig(BaseModel):
    enabled: bool = True
    rate_limit: ToolRateLimit = ToolRateLimit()
    retry: ToolRetry = ToolRetry()


def _default_tools() -> dict[str, ToolConfig]:
    return {
        "github": ToolConfig(),
        "news": ToolConfig(
            rate_limit=ToolRateLimit(max_requests=100, window_seconds=86_400),
            retry=ToolRetry(max_attempts=2, backoff_seconds=2.0),
        ),
        "weather": ToolConfig(),
    }


# Conventional variable names honored when the prefixed form is unset.
_WELL_KNOWN_KEYS = {
    "OPENAI_API_KEY": ("llm", "api_key"),
    "GITHUB_API_KEY": ("external_apis.github", "api_key"),
    "NEWS_API_KEY": ("external_apis.news", "api_key"),
    "WEATHER_API_KEY": ("external_apis.weather", "api_key"),
}


class AppConfig(BaseSettings):
    """Top-level application settings.

    Environment variables use the ``INSIGHT_`` prefix with ``__`` as the
    nested delimiter, e.g. ``INSIGHT_LLM__MODEL=gpt-4o``.
    """

    model_config = SettingsConfigDict(
        env_prefix="INSIGHT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    cache: CacheConfig = CacheConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    external_apis: ExternalAPIsConfig = ExternalAPIsConfig()
    tools: dict[str, ToolConfig] = Field(default_factory=_default_tools)

    @model_validator(mode="after")
    def apply_well_known_env(self) -> "AppConfig":
        for env_name, (path, attr) in _WELL_KNOWN_KEYS.items():
            value = os.environ.get(env_name)
            if not value:
                continue
            target = self
            for part in path.split("."):
                target = getattr(target, part)
            if not getattr(target, attr):
                setattr(target, attr, value)
        if port := os.environ.get("PORT"):
            if "INSIGHT_SERVER__PORT" not in os.environ:
                self.server.port = int(port)
        return self

    def tool_enabled(self, name: str) -> bool:
        tool = self.tools.get(name)
        return tool.enabled if tool else True
