"""Insight report models — the advisory flow's final output."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from insight.schemas.agents import Confidence, Severity, Suggestion
from insight.schemas.project import Priority


class RecommendationCategory(str, Enum):
    QUICK_WIN = "quick-win"
    STRATEGIC = "strategic"
    LONG_TERM = "long-term"


class DataPoint(BaseModel):
    source: str
    value: str | float
    timestamp: datetime = Field(default_factory=datetime.now)
    relevance: float = 0.5


class Alternative(BaseModel):
    title: str
    description: str
    pros: list[str] = []
    cons: list[str] = []


class Recommendation(BaseModel):
    id: str                      # e.g. "rec-1", "rec-tactical-2"
    title: str
    description: str
    priority: int = 2            # 1 = do first
    category: RecommendationCategory = RecommendationCategory.STRATEGIC
    confidence: Confidence = 0.0
    reasoning: str = ""
    supporting_data: list[DataPoint] = []
    alternatives: list[Alternative] = []


class Risk(BaseModel):
    id: str
    title: str
    description: str
    severity: Severity = "medium"
    probability: float = 0.5
    mitigation: list[str] = []
    impact: str = ""


class ActionItem(BaseModel):
    id: str
    title: str
    description: str
    priority: Priority = Priority.MEDIUM
    estimated_time: str = "1 week"
    dependencies: list[str] = []
    assignee: str | None = None


class ReasoningStep(BaseModel):
    agent: str
    step: int
    input: dict[str, Any] = {}
    output: Any = None
    reasoning: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)


class InsightSummary(BaseModel):
    headline: str
    confidence: Confidence = 0.0
    based_on: list[str] = []
    narrative: str = ""


class InsightMetadata(BaseModel):
    agents_involved: list[str] = []
    data_sources_used: list[str] = []
    processing_time_ms: int = 0
    reasoning_path: list[ReasoningStep] = []


class InsightReport(BaseModel):
    project_id: str = ""
    project_name: str = ""
    generated_at: datetime = Field(default_factory=datetime.now)
    summary: InsightSummary
    recommendations: list[Recommendation] = []
    suggestions: list[Suggestion] = []
    risks: list[Risk] = []
    action_plan: list[ActionItem] = []
    metadata: InsightMetadata = InsightMetadata()
