"""Advice generation and retrieval."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from insight.api.deps import get_services
from insight.errors import NotFoundError
from insight.output.html import render_html_report
from insight.schemas.insight import InsightReport
from insight.schemas.project import ProjectPayload
from insight.services import Services

router = APIRouter(tags=["advice"])


class AdviceRequest(BaseModel):
    project_data: ProjectPayload | None = None


def _stored_report(services: Services, project_id: str) -> InsightReport:
    report = services.store.get_insight(project_id)
    if report is None:
        raise NotFoundError("Insight", project_id)
    return report


@router.post("/advice/{project_id}")
async def generate_advice(
    project_id: str,
    body: AdviceRequest | None = Body(default=None),
    services: Services = Depends(get_services),
):
    project_data = body.project_data if body else None
    report = await services.advisory.generate_insights(project_id, project_data)
    return {"success": True, "data": report.model_dump(mode="json")}


@router.get("/advice/{project_id}")
async def get_advice(project_id: str, services: Services = Depends(get_services)):
    report = _stored_report(services, project_id)
    return {"success": True, "data": report.model_dump(mode="json")}


@router.get("/advice/{project_id}/html", response_class=HTMLResponse)
async def get_advice_html(project_id: str, services: Services = Depends(get_services)):
    return HTMLResponse(render_html_report(_stored_report(services, project_id)))
