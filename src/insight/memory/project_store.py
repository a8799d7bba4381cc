"""Projects, insight reports and onboarding sessions.

Everything lives in the shared TTL cache. When ``store_path`` is set, projects
and insights are also mirrored into a JSON file and reloaded on start-up, so a
restarted server still answers ``GET /advice/{id}``.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError

from insight.memory.cache_manager import CacheManager
from insight.schemas.insight import InsightReport
from insight.schemas.project import OnboardingSession, ProjectPayload

logger = logging.getLogger(__name__)

PROJECT_PREFIX = "project:"
SESSION_PREFIX = "session:"
INSIGHT_SUFFIX = ":insight"


class ProjectStore:
    def __init__(self, cache: CacheManager, store_path: str | Path | None = None) -> None:
        self.cache = cache
        self.store_path = Path(store_path) if store_path else None
        if self.store_path:
            self._load()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def save_project(self, project_id: str, project: ProjectPayload) -> None:
        self.cache.set(PROJECT_PREFIX + project_id, project)
        logger.info("Project saved: %s", project_id)
        self._persist()

    def get_project(self, project_id: str) -> ProjectPayload | None:
        return self.cache.get(PROJECT_PREFIX + project_id)

    def delete_project(self, project_id: str) -> None:
        self.cache.delete(PROJECT_PREFIX + project_id)
        self.cache.delete(PROJECT_PREFIX + project_id + INSIGHT_SUFFIX)
        logger.info("Project deleted: %s", project_id)
        self._persist()

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    def save_insight(self, project_id: str, report: InsightReport) -> None:
        self.cache.set(PROJECT_PREFIX + project_id + INSIGHT_SUFFIX, report)
        logger.info("Insight saved: %s", project_id)
        self._persist()

    def get_insight(self, project_id: str) -> InsightReport | None:
        return self.cache.get(PROJECT_PREFIX + project_id + INSIGHT_SUFFIX)

    # ------------------------------------------------------------------
    # Onboarding sessions
    # ------------------------------------------------------------------

    def save_session(self, session: OnboardingSession) -> None:
        self.cache.set(SESSION_PREFIX + session.session_id, session)

    def get_session(self, session_id: str) -> OnboardingSession | None:
        return self.cache.get(SESSION_PREFIX + session_id)

    def clear_session(self, session_id: str) -> None:
        self.cache.delete(SESSION_PREFIX + session_id)

    def find_session_by_project_id(self, project_id: str) -> OnboardingSession | None:
        """The completed onboarding session that produced ``project_id``, if any."""
        for key in self.cache.keys(SESSION_PREFIX):
            session = self.cache.get(key)
            if session is not None and session.project_id == project_id:
                return session
        return None

    # ------------------------------------------------------------------
    # JSON mirror
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if not self.store_path:
            return
        projects: dict[str, dict] = {}
        insights: dict[str, dict] = {}
        for key in self.cache.keys(PROJECT_PREFIX):
            value = self.cache.get(key)
            if value is None:
                continue
            if key.endswith(INSIGHT_SUFFIX):
                insights[key[len(PROJECT_PREFIX):-len(INSIGHT_SUFFIX)]] = value.model_dump(mode="json")
            else:
                projects[key[len(PROJECT_PREFIX):]] = value.model_dump(mode="json")

        self.store_path.parent.mkdir(parents=True, exist_ok=True)
        # Readers only ever see a complete file
        tmp_path = self.store_path.with_name(self.store_path.name + ".tmp")
        tmp_path.write_text(json.dumps({"projects": projects, "insights": insights}, indent=2))
        os.replace(tmp_path, self.store_path)
        logger.debug("Store mirrored to %s", self.store_path)

    def _load(self) -> None:
        if not self.store_path.exists():
            return
        try:
            raw = json.loads(self.store_path.read_text())
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable store file %s: %s", self.store_path, exc)
            return
        projects = self._restore(raw.get("projects", {}), ProjectPayload, "")
        insights = self._restore(raw.get("insights", {}), InsightReport, INSIGHT_SUFFIX)
        logger.info("Loaded %d projects and %d insights from %s", projects, insights, self.store_path)

    def _restore(self, records: dict[str, dict], model: type[BaseModel], suffix: str) -> int:
        """Cache every record that still validates; returns how many did."""
        loaded = 0
        for project_id, data in records.items():
            try:
                value = model.model_validate(data)
            except ValidationError as exc:
                logger.warning(
                    "Skipping stored %s %s: %d validation errors",
                    model.__name__, project_id, exc.error_count(),
                )
                continue
            self.cache.set(PROJECT_PREFIX + project_id + suffix, value)
            loaded += 1
        return loaded
