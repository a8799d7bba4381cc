"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from insight import __version__
from insight.api.middleware import RateLimitMiddleware, RequestContextMiddleware, request_id_of
from insight.api.routes import advice, health, onboarding, projects, templates
from insight.errors import AppError, RateLimitExceeded
from insight.schemas.config import AppConfig
from insight.services import Services, build_services

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (onboarding.router, advice.router, projects.router, templates.router, health.router)


def _error_body(request: Request, message: str, code: str, **extra) -> dict:
    return {
        "success": False,
        "error": {"message": message, "code": code, **extra},
        "request_id": request_id_of(request),
    }


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(level, "%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
        headers = None
        extra = {}
        if isinstance(exc, RateLimitExceeded) and exc.retry_after is not None:
            extra["retry_after"] = exc.retry_after
            headers = {"Retry-After": str(int(exc.retry_after))}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.code, **extra),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else "Invalid request"
        logger.warning("Request validation failed on %s: %s", request.url.path, message)
        return JSONResponse(status_code=400, content=_error_body(request, message, "VALIDATION_ERROR"))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "Internal server error", "INTERNAL_ERROR"),
        )


def create_app(config: AppConfig | None = None, *, services: Services | None = None) -> FastAPI:
    """Build the API. Pass ``services`` to reuse a prebuilt object graph (tests do)."""
    services = services or build_services(config)
    config = services.config

    app = FastAPI(title="Insight Assistant", version=__version__)
    app.state.services = services

    # Starlette runs the last-added middleware first.
    app.add_middleware(
        RateLimitMiddleware,
        window_seconds=config.rate_limit.window_seconds,
        max_requests=config.rate_limit.max_requests,
    )
    app.add_middleware(RequestContextMiddleware, metrics=services.metrics)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    for router in ROUTERS:
        app.include_router(router)
        app.include_router(router, prefix=API_PREFIX)

    @app.get("/")
    async def root():
        return {
            "success": True,
            "data": {
                "service": "insight-assistant",
                "version": __version__,
                "endpoints": {
                    "onboard": "POST /onboard",
                    "continue_onboarding": "POST /onboard/{session_id}",
                    "generate_advice": "POST /advice/{project_id}",
                    "get_advice": "GET /advice/{project_id}",
                    "advice_html": "GET /advice/{project_id}/html",
                    "project": "GET /projects/{id}",
                    "refine": "POST /projects/{id}/refine",
                    "reasoning": "GET /projects/{id}/reasoning",
                    "feedback": "POST /projects/{id}/feedback",
                    "templates": "GET /templates",
                    "health": "GET /health",
                    "metrics": "GET /health/metrics",
                    "prometheus": "GET /metrics",
                },
                "api_prefix": API_PREFIX,
            },
        }

    logger.info("API ready (model=%s, tools=%s)", getattr(services.client, "model", "?"),
                [t.name for t in services.tools])
    return app
