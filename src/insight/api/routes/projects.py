"""Stored projects: lookup, refinement, reasoning and feedback."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from insight.api.deps import get_services
from insight.errors import NotFoundError
from insight.schemas.project import ProjectUpdate
from insight.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["projects"])


class FeedbackRequest(BaseModel):
    feedback: str = Field(min_length=1)
    rating: int | None = Field(default=None, ge=1, le=5)


@router.get("/projects/{project_id}")
async def get_project(project_id: str, services: Services = Depends(get_services)):
    project = services.store.get_project(project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return {"success": True, "data": project.model_dump(mode="json")}


@router.post("/projects/{project_id}/refine")
async def refine_project(
    project_id: str,
    updates: ProjectUpdate,
    services: Services = Depends(get_services),
):
    report = await services.refinement.refine(project_id, updates)
    return {"success": True, "data": report.model_dump(mode="json")}


@router.get("/projects/{project_id}/reasoning")
async def get_reasoning(project_id: str, services: Services = Depends(get_services)):
    steps = services.refinement.get_reasoning_path(project_id)
    return {"success": True, "data": [step.model_dump(mode="json") for step in steps]}


@router.post("/projects/{project_id}/feedback")
async def submit_feedback(project_id: str, body: FeedbackRequest):
    logger.info("Feedback for %s (rating=%s)", project_id, body.rating)
    return {
        "success": True,
        "data": {"project_id": project_id, "feedback": body.feedback, "rating": body.rating},
    }
