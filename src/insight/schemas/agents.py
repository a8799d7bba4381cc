"""Pydantic models for agent outputs (onboarding and advisory stages)."""

from __future__ import annotations

from typing import Annotated, Generic, Literal, TypeVar

from pydantic import AfterValidator, BaseModel, Field

from insight.schemas.project import CollectionState
from insight.schemas.tools import EnrichedData

Severity = Literal["low", "medium", "high", "critical"]


def _clamp(v: float) -> float:
    return max(0.0, min(1.0, float(v)))


Confidence = Annotated[float, AfterValidator(_clamp)]
"""A score in [0, 1]; out-of-range model output is clamped, not rejected."""

T = TypeVar("T")


class AgentResponse(BaseModel, Generic[T]):
    """Envelope every agent returns, whether the LLM or the heuristic answered."""

    success: bool
    data: T | None = None
    confidence: Confidence = 0.0
    reasoning: str = ""
    error: str | None = None
    used_llm: bool = False


class AgentConfig(BaseModel):
    name: str
    description: str
    temperature: float = 0.7
    max_tokens: int = 2000


class TemplateMatchResult(BaseModel):
    template_id: str
    confidence: Confidence
    reasoning: str
    suggested_fields: list[str] = []


class ValidationIssue(BaseModel):
    field: str
    message: str
    severity: Literal["error", "warning", "info"] = "error"


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue] = []
    suggestions: list[str] = []
    confidence: Confidence = 0.0


class CollectionOutcome(BaseModel):
    """What one data-collection turn produced."""

    state: CollectionState
    next_question: str | None = None
    is_complete: bool = False


class AnalysisResult(BaseModel):
    patterns: list[str] = []
    strengths: list[str] = []
    weaknesses: list[str] = []
    opportunities: list[str] = []
    threats: list[str] = []
    confidence: Confidence = 0.0


class StrategyResult(BaseModel):
    strategies: list[str] = []
    priorities: list[str] = []
    timeline: str = ""
    resources: list[str] = []
    confidence: Confidence = 0.0


class TacticalResult(BaseModel):
    actions: list[str] = []
    sequence: list[str] = []
    dependencies: list[str] = []
    estimates: dict[str, str] = {}
    confidence: Confidence = 0.0


class RiskAssessmentResult(BaseModel):
    risks: list[str] = []
    mitigations: dict[str, list[str]] = {}
    severity: dict[str, Severity] = {}
    confidence: Confidence = 0.0


class Suggestion(BaseModel):
    suggestion: str
    reason: str = ""
    source: str = ""


class SynthesisInput(BaseModel):
    """Everything the earlier advisory stages produced."""

    analysis: AnalysisResult
    strategy: StrategyResult
    tactical: TacticalResult
    risks: RiskAssessmentResult
    external_data: list[EnrichedData] = []
    # Stage key -> the stage's own one-line reasoning
    stage_reasoning: dict[str, str] = {}


class SynthesisNarrative(BaseModel):
    """The part of the report the LLM writes; the rest is assembled."""

    headline: str = ""
    summary: str = ""
    suggestions: list[Suggestion] = Field(default_factory=list)
