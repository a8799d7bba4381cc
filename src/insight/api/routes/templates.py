"""Template catalogue."""

from __future__ import annotations

from fastapi import APIRouter

from insight.templates import TEMPLATES

router = APIRouter(tags=["templates"])


@router.get("/templates")
async def list_templates():
    return {"success": True, "data": [t.model_dump(mode="json") for t in TEMPLATES]}
