"""Data tool ABC — one external API that can enrich the advisory flow."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from insight.memory.cache_manager import CacheManager
from insight.schemas.config import ExternalAPI, ExternalAPIsConfig
from insight.schemas.project import ProjectPayload
from insight.schemas.tools import EnrichedData
from insight.shared.http_client import build_async_client

logger = logging.getLogger(__name__)


class DataTool(ABC):
    """Abstract base class for the external data sources.

    Subclasses implement:
    - ``name`` / ``description`` / ``cache_ttl`` class attributes
    - ``relevance_score(project)`` — how useful this source is for the project
    - ``cache_key(project)`` — key the fetched data is cached under
    - ``_fetch(project, http)`` — the actual API call
    """

    name: str
    description: str
    cache_ttl: int = 3600

    def __init__(
        self,
        api: ExternalAPI,
        cache: CacheManager,
        *,
        http_config: ExternalAPIsConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.api = api
        self.cache = cache
        self.http_config = http_config or ExternalAPIsConfig()
        self._http = http

    @abstractmethod
    def relevance_score(self, project: ProjectPayload) -> float:
        """Score in [0, 1]; tools at or below 0.3 are never selected."""

    @abstractmethod
    def cache_key(self, project: ProjectPayload) -> str:
        """Cache key for this project's data."""

    @abstractmethod
    async def _fetch(self, project: ProjectPayload, http: httpx.AsyncClient) -> EnrichedData:
        """Call the API and wrap the result."""

    async def fetch(self, project: ProjectPayload) -> EnrichedData:
        key = self.cache_key(project)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("%s data served from cache (%s)", self.name, key)
            return cached

        if self._http is not None:
            data = await self._fetch(project, self._http)
        else:
            async with build_async_client(self.http_config) as http:
                data = await self._fetch(project, http)

        self.cache.set(key, data, self.cache_ttl)
        return data
