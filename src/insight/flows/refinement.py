"""Refinement flow — patch a stored project and regenerate its insights."""

from __future__ import annotations

import logging
from datetime import datetime

import pydantic

from insight.errors import NotFoundError, ValidationError
from insight.flows.advisory import AdvisoryFlow
from insight.memory.project_store import ProjectStore
from insight.schemas.insight import InsightReport, ReasoningStep
from insight.schemas.project import ProjectMetadata, ProjectPayload, ProjectUpdate
from insight.shared.metrics import MetricsCollector, track_timing

logger = logging.getLogger(__name__)


class RefinementFlow:
    def __init__(self, store: ProjectStore, advisory: AdvisoryFlow, metrics: MetricsCollector) -> None:
        self.store = store
        self.advisory = advisory
        self.metrics = metrics

    def apply_updates(self, project: ProjectPayload, updates: ProjectUpdate) -> ProjectPayload:
        """Merge the fields set in ``updates``; ``metadata.completed_at`` is bumped."""
        merged = project.model_dump()
        merged.update(updates.model_dump(exclude_none=True))
        metadata = project.metadata or ProjectMetadata()
        merged["metadata"] = metadata.model_copy(update={"completed_at": datetime.now()}).model_dump()
        try:
            return ProjectPayload.model_validate(merged)
        except pydantic.ValidationError as exc:
            raise ValidationError(
                "Invalid project update",
                details=exc.errors(include_url=False, include_context=False),
            ) from exc

    async def refine(self, project_id: str, updates: ProjectUpdate) -> InsightReport:
        async with track_timing(self.metrics, "flow.refinement.refine"):
            project = self.store.get_project(project_id)
            if project is None:
                raise NotFoundError("Project", project_id)

            refined = self.apply_updates(project, updates)
            self.store.save_project(project_id, refined)
            logger.info(
                "Project %s refined (%s)",
                project_id, ", ".join(updates.model_dump(exclude_none=True)) or "no changes",
            )
            report = await self.advisory.generate_insights(project_id)
        self.metrics.increment("flow.refinement.complete")
        return report

    def get_reasoning_path(self, project_id: str) -> list[ReasoningStep]:
        report = self.store.get_insight(project_id)
        if report is None:
            raise NotFoundError("Insight", project_id)
        return report.metadata.reasoning_path
