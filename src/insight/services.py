"""Wires config, memory, tools, agents and flows together."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from insight.flows.advisory import AdvisoryFlow
from insight.flows.onboarding import OnboardingFlow
from insight.flows.refinement import RefinementFlow
from insight.memory.cache_manager import CacheManager
from insight.memory.conversation import ConversationMemory
from insight.memory.project_store import ProjectStore
from insight.schemas.config import AppConfig
from insight.shared.llm_client import CompletionClient, build_client
from insight.shared.metrics import MetricsCollector
from insight.tools.base import DataTool
from insight.tools.registry import build_tools

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: AppConfig
    client: CompletionClient
    metrics: MetricsCollector
    cache: CacheManager
    store: ProjectStore
    conversation: ConversationMemory
    tools: list[DataTool]
    onboarding: OnboardingFlow
    advisory: AdvisoryFlow
    refinement: RefinementFlow


def build_services(
    config: AppConfig | None = None,
    *,
    client: CompletionClient | None = None,
    http: httpx.AsyncClient | None = None,
    dry_run: bool = False,
) -> Services:
    """Build the object graph. ``client`` and ``http`` are injection points for tests."""
    config = config or AppConfig()
    client = client or build_client(config.llm, dry_run=dry_run)
    metrics = MetricsCollector()
    cache = CacheManager(config.cache.ttl_seconds, config.cache.max_entries)
    store = ProjectStore(cache, config.cache.store_path or None)
    conversation = ConversationMemory(cache)
    tools = build_tools(config, cache, http=http)

    advisory = AdvisoryFlow(client, store, tools, metrics)
    logger.debug(
        "Services built (model=%s, tools=%s)",
        getattr(client, "model", "?"), [t.name for t in tools],
    )
    return Services(
        config=config,
        client=client,
        metrics=metrics,
        cache=cache,
        store=store,
        conversation=conversation,
        tools=tools,
        onboarding=OnboardingFlow(client, store, conversation, metrics),
        advisory=advisory,
        refinement=RefinementFlow(store, advisory, metrics),
    )
