"""Onboarding flow — match a template, collect fields, validate, save."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from insight.agents.data_collector.agent import DataCollectorAgent
from insight.agents.template_matcher.agent import TemplateMatcherAgent
from insight.agents.validator.agent import ValidatorAgent
from insight.errors import AgentError, ValidationError
from insight.memory.conversation import ConversationMemory
from insight.memory.project_store import ProjectStore
from insight.schemas.flows import OnboardingStart, OnboardingTurn
from insight.schemas.project import (
    VALID_CATEGORIES,
    CollectionState,
    OnboardingSession,
    Owner,
    ProjectPayload,
    ProjectMetadata,
    dedupe_goals,
)
from insight.shared.llm_client import CompletionClient
from insight.shared.metrics import MetricsCollector, track_timing

logger = logging.getLogger(__name__)

TEMPLATE_VERSION = "1.0"


def build_project_payload(state: CollectionState) -> ProjectPayload:
    """Turn a complete collection state into a project, filling safe defaults."""
    category = (state.category or "").lower()
    return ProjectPayload(
        project_name=(state.project_name or "").strip() or "Untitled Project",
        category=category if category in VALID_CATEGORIES else "other",
        goals=dedupe_goals(state.goals),
        owner=state.owner or Owner(name="Unknown"),
        constraints=state.constraints,
        timeline=state.timeline,
    )


class OnboardingFlow:
    def __init__(
        self,
        client: CompletionClient,
        store: ProjectStore,
        conversation: ConversationMemory,
        metrics: MetricsCollector,
    ) -> None:
        self.store = store
        self.metrics = metrics
        self.matcher = TemplateMatcherAgent(client, metrics)
        self.collector = DataCollectorAgent(client, metrics, conversation)
        self.validator = ValidatorAgent(client, metrics)

    async def start(self, user_input: str, category: str | None = None) -> OnboardingStart:
        if not user_input or not user_input.strip():
            raise ValidationError("user_input is required")

        async with track_timing(self.metrics, "flow.onboarding.start"):
            session_id = str(uuid.uuid4())
            logger.info("Onboarding started: session %s", session_id)

            match = await self.matcher.match(user_input, category)
            if not match.success:
                raise AgentError(f"Template matching failed: {match.error}")

            initial = CollectionState(category=category) if category in VALID_CATEGORIES else None
            collected = await self.collector.collect(session_id, user_input, initial)
            if not collected.success:
                raise AgentError(f"Data collection failed: {collected.error}")

            outcome = collected.data
            self.store.save_session(OnboardingSession(
                session_id=session_id,
                template_id=match.data.template_id,
                state=outcome.state,
            ))
            return OnboardingStart(
                session_id=session_id,
                template_id=match.data.template_id,
                next_question=outcome.next_question,
                current_state=outcome.state,
            )

    async def resume(
        self,
        session_id: str,
        user_input: str,
        current_state: CollectionState | None = None,
    ) -> OnboardingTurn:
        if not user_input or not user_input.strip():
            raise ValidationError("user_input is required")

        async with track_timing(self.metrics, "flow.onboarding.continue"):
            session = self.store.get_session(session_id) or OnboardingSession(session_id=session_id)
            state = current_state or session.state

            collected = await self.collector.collect(session_id, user_input, state)
            if not collected.success:
                raise AgentError(f"Data collection failed: {collected.error}")
            outcome = collected.data

            session.state = outcome.state
            session.updated_at = datetime.now()
            self.store.save_session(session)

            if not outcome.is_complete:
                return OnboardingTurn(
                    session_id=session_id,
                    next_question=outcome.next_question,
                    current_state=outcome.state,
                )

            outcome.state.goals = dedupe_goals(outcome.state.goals)
            project = build_project_payload(outcome.state)

            checked = await self.validator.validate(project)
            if not checked.success:
                raise AgentError(f"Validation failed: {checked.error}")
            validation = checked.data

            if not validation.is_valid:
                problems = ", ".join(e.message for e in validation.errors if e.severity == "error")
                return OnboardingTurn(
                    session_id=session_id,
                    next_question=f"Please address these issues: {problems}",
                    current_state=outcome.state,
                    validation=validation,
                )

            project_id = str(uuid.uuid4())
            project.metadata = ProjectMetadata(
                template_id=session.template_id,
                template_version=TEMPLATE_VERSION,
                confidence=validation.confidence,
            )
            self.store.save_project(project_id, project)

            session.project_id = project_id
            session.is_complete = True
            self.store.save_session(session)
            self.metrics.increment("flow.onboarding.complete")
            logger.info("Onboarding complete: session %s -> project %s", session_id, project_id)

            return OnboardingTurn(
                session_id=session_id,
                is_complete=True,
                current_state=outcome.state,
                project_id=project_id,
                project=project,
                validation=validation,
            )
