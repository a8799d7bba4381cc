"""Advisory flow — analyze, strategize, plan, assess risk, synthesize.

Stage 1 runs the analyzer and the external-data fetch concurrently; every
later stage depends on the one before it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from insight.agents.analyzer.agent import AnalyzerAgent
from insight.agents.risk.agent import RiskAgent
from insight.agents.strategist.agent import StrategistAgent
from insight.agents.synthesizer.agent import SynthesizerAgent
from insight.agents.tactical.agent import TacticalAgent
from insight.errors import AgentError, NotFoundError
from insight.flows.onboarding import build_project_payload
from insight.memory.project_store import ProjectStore
from insight.schemas.agents import AgentResponse, SynthesisInput
from insight.schemas.insight import InsightReport
from insight.schemas.project import ProjectPayload
from insight.shared.llm_client import CompletionClient
from insight.shared.metrics import MetricsCollector, track_timing
from insight.tools.base import DataTool
from insight.tools.registry import fetch_external_data

logger = logging.getLogger(__name__)


def _require(stage: str, response: AgentResponse):
    if not response.success:
        raise AgentError(f"{stage} failed: {response.error or 'unknown error'}")
    return response.data


class AdvisoryFlow:
    def __init__(
        self,
        client: CompletionClient,
        store: ProjectStore,
        tools: list[DataTool],
        metrics: MetricsCollector,
    ) -> None:
        self.store = store
        self.tools = tools
        self.metrics = metrics
        self.analyzer = AnalyzerAgent(client, metrics)
        self.strategist = StrategistAgent(client, metrics)
        self.tactical = TacticalAgent(client, metrics)
        self.risk = RiskAgent(client, metrics)
        self.synthesizer = SynthesizerAgent(client, metrics)

    def resolve_project(self, project_id: str, project_data: ProjectPayload | None = None) -> ProjectPayload:
        """Stored project, then supplied data (saved), then a completed onboarding session."""
        project = self.store.get_project(project_id)
        if project is not None:
            return project

        if project_data is not None:
            self.store.save_project(project_id, project_data)
            return project_data

        session = self.store.find_session_by_project_id(project_id)
        if session is not None and session.is_complete:
            logger.info("Rebuilding project %s from onboarding session %s", project_id, session.session_id)
            project = build_project_payload(session.state)
            self.store.save_project(project_id, project)
            return project

        raise NotFoundError("Project", project_id)

    async def generate_insights(
        self,
        project_id: str,
        project_data: ProjectPayload | None = None,
        *,
        on_stage: Callable[[str], None] | None = None,
    ) -> InsightReport:
        """Run every advisory stage; ``on_stage`` is told the name of each stage as it starts."""
        notify = on_stage or (lambda stage: None)
        started = time.perf_counter()
        project = self.resolve_project(project_id, project_data)
        logger.info("Advisory flow started for %s (%s)", project_id, project.project_name)

        async with track_timing(self.metrics, "flow.advisory.generate"):
            notify("analysis")
            async with track_timing(self.metrics, "flow.advisory.analysis"):
                analysis_response, external_data = await asyncio.gather(
                    self.analyzer.analyze(project),
                    fetch_external_data(self.tools, project),
                )
            analysis = _require("Analysis", analysis_response)

            notify("strategy")
            async with track_timing(self.metrics, "flow.advisory.strategy"):
                strategy_response = await self.strategist.strategize(project, analysis)
            strategy = _require("Strategy", strategy_response)

            notify("tactical")
            async with track_timing(self.metrics, "flow.advisory.tactical"):
                tactical_response = await self.tactical.plan(project, strategy)
            tactical = _require("Tactical planning", tactical_response)

            notify("risk")
            async with track_timing(self.metrics, "flow.advisory.risk"):
                risk_response = await self.risk.assess(project, analysis)
            risks = _require("Risk assessment", risk_response)

            inputs = SynthesisInput(
                analysis=analysis,
                strategy=strategy,
                tactical=tactical,
                risks=risks,
                external_data=external_data,
                stage_reasoning={
                    "analyzer": analysis_response.reasoning,
                    "strategist": strategy_response.reasoning,
                    "tactical": tactical_response.reasoning,
                    "risk": risk_response.reasoning,
                },
            )
            notify("synthesis")
            async with track_timing(self.metrics, "flow.advisory.synthesis"):
                report = _require("Synthesis", await self.synthesizer.synthesize(project, inputs))

        report.project_id = project_id
        report.metadata.processing_time_ms = int((time.perf_counter() - started) * 1000)
        self.store.save_insight(project_id, report)
        self.metrics.increment("flow.advisory.complete")
        logger.info(
            "Advisory flow finished for %s in %dms (%d recommendations, %d risks)",
            project_id, report.metadata.processing_time_ms,
            len(report.recommendations), len(report.risks),
        )
        return report
