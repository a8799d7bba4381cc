"""Project payload models — what onboarding collects and advisory consumes."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class ProjectCategory(str, Enum):
    TECH = "tech"
    BUSINESS = "business"
    COMMUNITY = "community"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    FINANCE = "finance"
    CREATIVE = "creative"
    OTHER = "other"


VALID_CATEGORIES: tuple[str, ...] = tuple(c.value for c in ProjectCategory)


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Goal(BaseModel):
    id: str
    description: str = Field(min_length=1)
    priority: Priority = Priority.MEDIUM
    measurable: bool = False
    deadline: date | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, v: object) -> object:
        # Models sometimes answer "High" or null
        if v is None or v == "":
            return Priority.MEDIUM
        return v.lower() if isinstance(v, str) else v


def dedupe_goals(goals: list[Goal]) -> list[Goal]:
    """Drop goals whose id or normalized description was already seen."""
    seen_ids: set[str] = set()
    seen_descriptions: set[str] = set()
    unique = []
    for goal in goals:
        key = goal.description.strip().lower()
        if goal.id in seen_ids or key in seen_descriptions:
            continue
        seen_ids.add(goal.id)
        seen_descriptions.add(key)
        unique.append(goal)
    return unique


class Owner(BaseModel):
    name: str = Field(min_length=1)
    email: str | None = None
    role: str | None = None


class Constraint(BaseModel):
    type: str = "general"
    description: str
    impact: Priority = Priority.MEDIUM


class Timeline(BaseModel):
    start_date: date
    end_date: date | None = None
    milestones: list[str] = []

    @property
    def duration_days(self) -> int | None:
        if self.end_date is None:
            return None
        return (self.end_date - self.start_date).days


class ProjectMetadata(BaseModel):
    template_id: str = ""
    template_version: str = "1.0"
    completed_at: datetime = Field(default_factory=datetime.now)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class ProjectPayload(BaseModel):
    """A fully onboarded project."""

    project_name: str = Field(min_length=1)
    category: ProjectCategory
    goals: list[Goal] = Field(min_length=1)
    owner: Owner
    constraints: list[Constraint] = []
    timeline: Timeline | None = None
    metadata: ProjectMetadata | None = None

    @field_validator("constraints", mode="before")
    @classmethod
    def coerce_constraint_strings(cls, v: object) -> object:
        """Accept bare strings as general constraints."""
        if v is None:
            return []
        if isinstance(v, list):
            return [{"description": c} if isinstance(c, str) else c for c in v]
        return v

    def text_blob(self) -> str:
        """Lowercased concatenation of goal and constraint text, for keyword checks."""
        parts = [g.description for g in self.goals]
        parts.extend(c.description for c in self.constraints)
        return " ".join(parts).lower()


class ProjectUpdate(BaseModel):
    """Partial update used by the refinement flow."""

    project_name: str | None = Field(default=None, min_length=1)
    category: ProjectCategory | None = None
    goals: list[Goal] | None = None
    owner: Owner | None = None
    constraints: list[Constraint] | None = None
    timeline: Timeline | None = None

    @field_validator("constraints", mode="before")
    @classmethod
    def coerce_constraint_strings(cls, v: object) -> object:
        if isinstance(v, list):
            return [{"description": c} if isinstance(c, str) else c for c in v]
        return v


class CollectionState(BaseModel):
    """Scratchpad the data collector fills in across onboarding turns."""

    project_name: str | None = None
    category: str | None = None
    goals: list[Goal] = []
    owner: Owner | None = None
    constraints: list[str] = []
    timeline: Timeline | None = None

    @field_validator("goals", "constraints", mode="before")
    @classmethod
    def coerce_none_to_list(cls, v: object) -> object:
        return [] if v is None else v


class OnboardingSession(BaseModel):
    """An onboarding conversation, stored between turns."""

    session_id: str
    template_id: str = ""
    state: CollectionState = Field(default_factory=CollectionState)
    is_complete: bool = False
    project_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
