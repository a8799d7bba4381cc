"""Exception hierarchy — every error the API maps to an HTTP status."""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error carrying an HTTP status and a machine-readable code."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, id: str | None = None) -> None:
        message = f"{resource} with id {id} not found" if id else f"{resource} not found"
        super().__init__(message)
        self.resource = resource
        self.id = id


class RateLimitExceeded(AppError):
    """Raised when the LLM provider (or our own limiter) keeps answering 429."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, *, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ExternalAPIError(AppError):
    status_code = 502
    code = "EXTERNAL_API_ERROR"

    def __init__(self, service: str, message: str, details: Any = None) -> None:
        super().__init__(f"External API error ({service}): {message}", details=details)
        self.service = service


class AgentError(AppError):
    """A flow stage reported failure."""

    code = "AGENT_ERROR"


class LLMError(AppError):
    """The LLM call failed for a reason other than rate limiting.

    Agents catch this and fall back to their heuristics.
    """

    status_code = 502
    code = "LLM_ERROR"
