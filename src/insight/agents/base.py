"""Base agent ABC — defines the pattern every agent follows."""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, TypeVar

from insight.errors import LLMError, RateLimitExceeded
from insight.schemas.agents import AgentConfig, AgentResponse
from insight.schemas.project import ProjectPayload
from insight.shared.llm_client import CompletionClient
from insight.shared.metrics import MetricsCollector

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_RETRY_MSG = (
    "I need the output as a single JSON object (no markdown, no explanation, "
    "just raw JSON) matching the schema described in your instructions. "
    "Please re-format your response now."
)

# Anything here means "answer from the heuristic rules instead".
FALLBACK_ERRORS = (LLMError, ValueError, json.JSONDecodeError, KeyError)


class BaseAgent(ABC):
    """Abstract base class for all agents.

    Subclasses set:
    - ``key`` — metric/log key, e.g. ``"analyzer"``
    - ``config`` — an ``AgentConfig`` with temperature and token budget
    - ``system_prompt`` — the system prompt string

    and expose one public coroutine that calls ``_answer`` with an LLM path and a
    heuristic path. Rate limiting is the only LLM failure that propagates.
    """

    key: str
    config: AgentConfig

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """System prompt for this agent; subclasses usually set a class attribute."""

    def __init__(self, client: CompletionClient, metrics: MetricsCollector | None = None) -> None:
        self.client = client
        self.metrics = metrics or MetricsCollector()

    @property
    def name(self) -> str:
        return self.config.name

    async def _complete(self, user_message: str, *, system: str | None = None, json_mode: bool = True) -> str:
        return await self.client.complete(
            system=system or self.system_prompt,
            user_message=user_message,
            json_mode=json_mode,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

    async def _complete_with_retry(
        self,
        user_message: str,
        parse_fn: Callable[[str], T],
        *,
        system: str | None = None,
    ) -> T:
        """Call the LLM, parse, and retry once if the output is not valid JSON."""
        raw = await self._complete(user_message, system=system)
        logger.debug("Agent %s raw output:\n%s", self.name, raw[:500])
        try:
            return parse_fn(raw)
        except (ValueError, json.JSONDecodeError, KeyError) as err:
            logger.warning(
                "Agent %s output was not valid JSON, requesting re-format. Error: %s",
                self.name, err,
            )

        # Feed the original output back and ask for JSON
        retry_msg = f"{user_message}\n\nAssistant's previous response:\n{raw}\n\n{_JSON_RETRY_MSG}"
        raw_retry = await self._complete(retry_msg, system=system)
        logger.debug("Agent %s retry output:\n%s", self.name, raw_retry[:500])
        return parse_fn(raw_retry)

    async def _answer(
        self,
        llm_call: Callable[[], Awaitable[T]],
        heuristic: Callable[[], T],
        *,
        confidence: Callable[[T], float],
        reasoning: Callable[[T], str],
    ) -> AgentResponse[T]:
        """Run the LLM path, falling back to the heuristic path.

        Records ``agent.<key>.duration`` plus one of ``success``, ``fallback``
        or ``error``. An unexpected exception produces ``success=False``.
        """
        start = time.perf_counter()
        logger.info("Agent %s started", self.name)
        used_llm = False
        try:
            try:
                data = await llm_call()
                used_llm = True
                outcome = "success"
            except RateLimitExceeded:
                raise
            except FALLBACK_ERRORS as err:
                logger.info("Agent %s falling back to heuristics: %s", self.name, err)
                data = heuristic()
                outcome = "fallback"
        except RateLimitExceeded:
            self.metrics.increment(f"agent.{self.key}.rate_limited")
            raise
        except Exception as exc:
            logger.exception("Agent %s failed", self.name)
            self.metrics.increment(f"agent.{self.key}.error")
            return AgentResponse(success=False, error=str(exc) or type(exc).__name__)
        finally:
            self.metrics.timing(f"agent.{self.key}.duration", (time.perf_counter() - start) * 1000)

        self.metrics.increment(f"agent.{self.key}.{outcome}")
        score = confidence(data)
        logger.info("Agent %s finished (%s, confidence=%.2f)", self.name, outcome, score)
        return AgentResponse(
            success=True,
            data=data,
            confidence=score,
            reasoning=reasoning(data),
            used_llm=used_llm,
        )


def project_completeness(project: ProjectPayload) -> float:
    """Weighted share of the project fields that are filled in."""
    score = 0.0
    if project.project_name:
        score += 0.2
    if project.category:
        score += 0.2
    if project.goals:
        score += 0.2
    if project.owner:
        score += 0.2
    if project.timeline:
        score += 0.1
    if project.constraints:
        score += 0.1
    return min(round(score, 2), 1.0)


def project_brief(project: ProjectPayload) -> dict[str, Any]:
    """Compact JSON-able view of a project for prompts."""
    return project.model_dump(mode="json", exclude={"metadata"}, exclude_none=True)


def extract_json(text: str) -> dict[str, Any]:
    """Extract a JSON object from text that may contain markdown fences."""
    text = text.strip()

    # 1. Try direct parse (clean JSON response)
    if text.startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Might have trailing text, try raw_decode
            try:
                obj, _ = json.JSONDecoder().raw_decode(text)
                return obj
            except json.JSONDecodeError:
                pass

    # 2. Look for ```json ... ``` or ``` ... ``` fenced blocks
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return json.loads(match.group(1).strip())

    # 3. Find the first { and try to parse a JSON object starting there
    try:
        start = text.index("{")
        obj, _ = json.JSONDecoder().raw_decode(text, idx=start)
        return obj
    except (ValueError, json.JSONDecodeError):
        pass

    raise ValueError(
        f"Could not extract JSON from model response (length={len(text)}). "
        f"First 300 chars: {text[:300]!r}"
    )
