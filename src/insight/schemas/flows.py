"""Results returned by the onboarding flow."""

from __future__ import annotations

from pydantic import BaseModel

from insight.schemas.agents import ValidationResult
from insight.schemas.project import CollectionState, ProjectPayload


class OnboardingStart(BaseModel):
    session_id: str
    template_id: str
    next_question: str | None = None
    current_state: CollectionState


class OnboardingTurn(BaseModel):
    session_id: str
    is_complete: bool = False
    next_question: str | None = None
    current_state: CollectionState
    project_id: str | None = None
    project: ProjectPayload | None = None
    validation: ValidationResult | None = None
