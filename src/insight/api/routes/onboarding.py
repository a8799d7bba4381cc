"""Onboarding conversation endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from insight.api.deps import get_services
from insight.schemas.project import CollectionState, ProjectCategory
from insight.services import Services

router = APIRouter(tags=["onboarding"])


class OnboardRequest(BaseModel):
    user_input: str
    category: ProjectCategory | None = None


class ContinueRequest(BaseModel):
    user_input: str
    current_state: CollectionState | None = None


@router.post("/onboard")
async def start_onboarding(body: OnboardRequest, services: Services = Depends(get_services)):
    category = body.category.value if body.category else None
    result = await services.onboarding.start(body.user_input, category)
    return {"success": True, "data": result.model_dump(mode="json")}


@router.post("/onboard/{session_id}")
async def continue_onboarding(
    session_id: str,
    body: ContinueRequest,
    services: Services = Depends(get_services),
):
    result = await services.onboarding.resume(session_id, body.user_input, body.current_state)
    return {"success": True, "data": result.model_dump(mode="json")}
