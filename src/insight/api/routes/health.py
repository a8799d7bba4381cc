"""Health and metrics endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST

from insight.api.deps import get_services
from insight.services import Services

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(services: Services = Depends(get_services)):
    metrics = services.metrics.get_metrics()
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "cache": services.cache.stats().model_dump(),
        "metrics": {
            "total": len(metrics),
            "recent": [m.model_dump(mode="json") for m in metrics[-10:]],
        },
    }


@router.get("/metrics")
async def prometheus_metrics(services: Services = Depends(get_services)):
    return Response(services.metrics.exposition(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health/metrics")
async def all_metrics(services: Services = Depends(get_services)):
    return {
        "success": True,
        "data": {
            "metrics": [m.model_dump(mode="json") for m in services.metrics.get_metrics()],
            "cache": services.cache.stats().model_dump(),
        },
    }
