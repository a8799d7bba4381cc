"""Async OpenAI wrapper used by every agent.

Each agent makes a single prompt/response call through ``complete``. The
client owns the rate-limit backoff; callers only see ``RateLimitExceeded``
once retries are exhausted, or ``LLMError`` for anything else.
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
from collections import deque
from typing import Any, Callable, Protocol

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from insight.errors import LLMError, RateLimitExceeded
from insight.schemas.config import LLMConfig

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 2_000
DRY_RUN_HISTORY = 50

# Backoff floors, in seconds
_RATE_LIMIT_BASE_DELAY = 5
_CONNECTION_BASE_DELAY = 1

_TRY_AGAIN_RE = re.compile(r"try again in (\d+(?:\.\d+)?)\s*(ms|s)\b", re.IGNORECASE)


def _parse_retry_after(exc: RateLimitError) -> float | None:
    """Seconds the provider asked us to wait, or None.

    The ``Retry-After`` header wins; otherwise the "try again in 20s" (or
    "ms") hint in the error text is used.
    """
    response = getattr(exc, "response", None)
    header = response.headers.get("retry-after") if response is not None else None
    if header:
        try:
            return float(header)
        except ValueError:
            logger.debug("Unparseable Retry-After header: %r", header)

    if hint := _TRY_AGAIN_RE.search(str(exc)):
        value = float(hint.group(1))
        return value / 1000 if hint.group(2).lower() == "ms" else value
    return None


TokensCallback = Callable[[int, int], None]
"""Called with (input_tokens, output_tokens) when a completion finishes."""


class CompletionClient(Protocol):
    async def complete(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        temperature: float = 0.7,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_tokens: TokensCallback | None = None,
    ) -> str: ...


class LLMClient:
    """Thin async wrapper around the OpenAI SDK — single request/response, no tools."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        *,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ) -> None:
        self.config = config or LLMConfig()
        kwargs: dict[str, Any] = {
            "api_key": self.config.api_key or None,
            "timeout": self.config.timeout_seconds,
            # We do our own backoff; the SDK's would double it.
            "max_retries": 0,
        }
        if self.config.base_url:
            kwargs["base_url"] = self.config.base_url
        self._client = AsyncOpenAI(**kwargs)
        self._sleep = sleep

    @property
    def model(self) -> str:
        return self.config.model

    async def _call_with_retry(self, **kwargs: Any) -> Any:
        """Create a chat completion, backing off on 429 and connection errors.

        The 429 delay is the larger of the provider's hint and ``5 * 2**attempt``,
        with ±25% jitter. Context-window overflows are not retried.
        """
        attempts = max(1, self.config.max_retries)
        for attempt in range(attempts):
            try:
                return await self._client.chat.completions.create(**kwargs)
            except RateLimitError as exc:
                msg = str(exc).lower()
                if "request too large" in msg or "context_length_exceeded" in msg:
                    logger.error("Request exceeds token limit (not retryable): %s", exc)
                    raise LLMError(f"LLM request too large: {exc}") from exc

                suggested = _parse_retry_after(exc)
                if attempt == attempts - 1:
                    raise RateLimitExceeded(
                        "Rate limit exceeded. Please retry after "
                        f"{int(suggested or 60)} seconds.",
                        retry_after=suggested or 60.0,
                    ) from exc

                backoff = _RATE_LIMIT_BASE_DELAY * (2 ** attempt)
                base_delay = max(suggested or 0.0, backoff)
                jitter = random.uniform(-0.25 * base_delay, 0.25 * base_delay)
                delay = max(1.0, base_delay + jitter)

                logger.warning(
                    "LLM 429 on attempt %d/%d, sleeping %.1fs (hint=%.1fs, floor=%ds): %s",
                    attempt + 1, attempts, delay, suggested or 0.0, backoff, exc,
                )
                await self._sleep(delay)
            except (APIConnectionError, APITimeoutError) as exc:
                if attempt == attempts - 1:
                    raise LLMError(f"LLM connection failed: {exc}") from exc
                backoff = _CONNECTION_BASE_DELAY * (2 ** min(attempt, 3))
                jitter = random.uniform(-0.25 * backoff, 0.25 * backoff)
                delay = max(0.5, backoff + jitter)
                logger.warning(
                    "LLM connection problem on attempt %d/%d, sleeping %.1fs: %s",
                    attempt + 1, attempts, delay, exc,
                )
                await self._sleep(delay)
            except APIError as exc:
                raise LLMError(f"LLM call failed: {exc}") from exc
        raise LLMError("LLM call failed without a response")

    async def complete(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        temperature: float = 0.7,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        """Single request/response.

        When ``json_mode`` is True the API guarantees the response is a JSON
        object; callers still run it through ``extract_json``.
        """
        kwargs: dict[str, Any] = {
            "model": self.config.model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user_message},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = await self._call_with_retry(**kwargs)
        usage = getattr(response, "usage", None)
        if on_tokens and usage:
            on_tokens(getattr(usage, "prompt_tokens", 0), getattr(usage, "completion_tokens", 0))
        return response.choices[0].message.content or ""


# ======================================================================
# Dry-run client: zero API calls
# ======================================================================


class DryRunClient:
    """Drop-in replacement for LLMClient that makes zero API calls.

    Every call raises ``LLMError`` so each agent answers from its heuristic
    rules. Used when no API key is configured and for ``--dry-run``.
    """

    model = "dry-run"

    def __init__(self, history: int = DRY_RUN_HISTORY) -> None:
        # First line of the system prompt for the most recent skipped calls
        self.calls: deque[str] = deque(maxlen=history)
        self.call_count = 0

    async def complete(
        self,
        *,
        system: str,
        user_message: str,
        json_mode: bool = True,
        temperature: float = 0.7,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        on_tokens: TokensCallback | None = None,
    ) -> str:
        self.calls.append(system.splitlines()[0] if system else "")
        self.call_count += 1
        logger.debug("[dry-run] LLM call skipped: %s", self.calls[-1])
        raise LLMError("LLM disabled (dry-run)")


def build_client(config: LLMConfig, *, dry_run: bool = False) -> CompletionClient:
    """Return a live client when an API key is configured, else a dry-run one."""
    if dry_run or not config.api_key:
        if not dry_run:
            logger.warning("No LLM API key configured — agents will use heuristic fallbacks")
        return DryRunClient()
    return LLMClient(config)
