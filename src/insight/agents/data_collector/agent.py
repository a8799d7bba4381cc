"""Data Collector — fills in the onboarding scratchpad one message at a time."""

from __future__ import annotations

import logging
import re
from typing import Any

from insight.agents.base import BaseAgent, extract_json
from insight.agents.data_collector.prompts import (
    NAME_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    build_name_message,
    build_user_message,
)
from insight.errors import LLMError
from insight.memory.conversation import ConversationMemory
from insight.schemas.agents import AgentConfig, AgentResponse, CollectionOutcome
from insight.schemas.project import VALID_CATEGORIES, CollectionState, Goal, Owner
from insight.shared.llm_client import CompletionClient
from insight.shared.metrics import MetricsCollector

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "Project Owner"

# First hit wins, so more specific words come first within each category.
CATEGORY_KEYWORDS: list[tuple[str, str]] = [
    ("tech", "tech"),
    ("technology", "tech"),
    ("software", "tech"),
    ("app", "tech"),
    ("business", "business"),
    ("startup", "business"),
    ("community", "community"),
    ("event", "community"),
    ("education", "education"),
    ("school", "education"),
    ("course", "education"),
    ("healthcare", "healthcare"),
    ("health", "healthcare"),
    ("clinic", "healthcare"),
    ("finance", "finance"),
    ("budget", "finance"),
    ("investment", "finance"),
    ("art", "creative"),
    ("design", "creative"),
    ("music", "creative"),
    ("creative", "creative"),
]

_SENTENCE_SPLIT = re.compile(r"[.!?]")
_NAMED_RE = re.compile(r"\b(?:called|named)\s+[\"']?([\w][\w\s&'-]{1,60}?)[\"']?\s*(?:[.,!?;]|$)", re.IGNORECASE)
_BUILD_RE = re.compile(r"\b(?:build|create)\s+(?:an?\s+|the\s+)?([\w][\w\s&'-]{2,60}?)\s*(?:[.,!?;]|\bfor\b|\bto\b|\bthat\b|$)", re.IGNORECASE)
_OWNER_PATTERNS = [
    re.compile(r"\bmy name is\s+([A-Za-z][A-Za-z'-]*(?:\s+[A-Za-z][A-Za-z'-]*){0,2})", re.IGNORECASE),
    re.compile(r"\bowner is\s+([A-Za-z][A-Za-z'-]*(?:\s+[A-Za-z][A-Za-z'-]*){0,2})", re.IGNORECASE),
    # "I am building..." is not a name; require a capitalized word
    re.compile(r"\bI am\s+([A-Z][a-z'-]+(?:\s+[A-Z][a-z'-]+){0,2})"),
]
_NAME_ONLY_RE = re.compile(r"^[A-Za-z\s]+$")
_GOAL_NUMBER_RE = re.compile(r"\d+")


class DataCollectorAgent(BaseAgent):
    key = "data_collector"
    config = AgentConfig(
        name="Data Collector",
        description="Collects project fields through a short conversation",
        temperature=0.2,
        max_tokens=1000,
    )
    system_prompt = SYSTEM_PROMPT

    def __init__(
        self,
        client: CompletionClient,
        metrics: MetricsCollector | None = None,
        conversation: ConversationMemory | None = None,
    ) -> None:
        super().__init__(client, metrics)
        self.conversation = conversation

    async def collect(
        self,
        session_id: str,
        user_input: str,
        state: CollectionState | None = None,
    ) -> AgentResponse[CollectionOutcome]:
        """Apply one user message to the collection state and pick the next question."""
        base = state.model_copy(deep=True) if state else CollectionState()

        response = await self._answer(
            lambda: self._collect_with_llm(user_input, base.model_copy(deep=True)),
            lambda: self._collect_heuristic(user_input, base.model_copy(deep=True)),
            confidence=lambda o: 0.9 if o.is_complete else 0.6,
            reasoning=lambda o: (
                "All required data collected"
                if o.is_complete
                else f"Need more information: {o.next_question}"
            ),
        )

        if self.conversation is not None and response.success:
            self.conversation.add_message(session_id, "user", user_input)
            if response.data.next_question:
                self.conversation.add_message(session_id, "assistant", response.data.next_question)
        return response

    # ------------------------------------------------------------------
    # The two collection paths
    # ------------------------------------------------------------------

    async def _collect_with_llm(self, user_input: str, state: CollectionState) -> CollectionOutcome:
        self._apply_direct_answer(user_input, state)
        original_name = state.project_name
        extracted = await self._complete_with_retry(
            build_user_message(user_input, state), extract_json,
        )
        merge_extracted(state, extracted, original_name=original_name)
        self._apply_owner_rules(user_input, state)
        if not state.project_name and state.goals and state.owner:
            state.project_name = await self._suggest_name(state)
        return self._finish(state)

    def _collect_heuristic(self, user_input: str, state: CollectionState) -> CollectionOutcome:
        self._apply_direct_answer(user_input, state)
        original_name = state.project_name
        merge_extracted(state, extract_heuristic(user_input, state), original_name=original_name)
        self._apply_owner_rules(user_input, state)
        if not state.project_name and state.goals and state.owner:
            state.project_name = name_from_goals(state.goals)
        return self._finish(state)

    def _finish(self, state: CollectionState) -> CollectionOutcome:
        question = next_question(state)
        return CollectionOutcome(state=state, next_question=question, is_complete=question is None)

    # ------------------------------------------------------------------
    # Rules shared by both paths
    # ------------------------------------------------------------------

    @staticmethod
    def _apply_direct_answer(user_input: str, state: CollectionState) -> None:
        """Treat the message as a direct answer to the last question when it looks like one."""
        trimmed = user_input.strip().lower()
        if not state.category and trimmed in VALID_CATEGORIES:
            state.category = trimmed
            # The category word may have been mistaken for a name earlier
            if state.project_name and state.project_name.lower() == trimmed:
                state.project_name = None
            if state.owner and state.owner.name.lower() == trimmed:
                state.owner = None
        elif (
            not (state.project_name or "").strip()
            and state.category
            and 2 < len(trimmed) < 100
            and "?" not in trimmed
            and not trimmed.startswith(("i want", "my goal"))
            and trimmed not in VALID_CATEGORIES
        ):
            state.project_name = user_input.strip()

    @staticmethod
    def _apply_owner_rules(user_input: str, state: CollectionState) -> None:
        trimmed = user_input.strip()
        lowered = trimmed.lower()
        if lowered == "skip" and state.owner is None:
            state.owner = Owner(name=DEFAULT_OWNER)
            return
        if (
            state.owner is None
            and trimmed != state.project_name
            and lowered not in VALID_CATEGORIES
            and lowered != "skip"
            and len(trimmed) < 50
            and "project" not in lowered
            and "goal" not in lowered
            and len(trimmed.split()) <= 3
            and _NAME_ONLY_RE.match(trimmed)
        ):
            state.owner = Owner(name=trimmed)

    async def _suggest_name(self, state: CollectionState) -> str:
        try:
            raw = await self._complete(
                build_name_message(state), system=NAME_SYSTEM_PROMPT, json_mode=False,
            )
        except LLMError as err:
            logger.info("Name suggestion unavailable, using first goal: %s", err)
            return name_from_goals(state.goals)
        cleaned = re.sub(r"[\"']", "", raw).strip().split("\n")[0].strip()
        if 0 < len(cleaned) < 50:
            return cleaned
        return name_from_goals(state.goals)


# ----------------------------------------------------------------------
# Module-level helpers (used by tests and the CLI)
# ----------------------------------------------------------------------


def next_question(state: CollectionState) -> str | None:
    """Return the next question to ask, or None when collection is complete.

    When only the owner is missing, a default owner is filled in instead of asking.
    """
    if not (state.project_name or "").strip():
        if state.goals or state.owner:
            return (
                "What would you like to name this project? "
                "(You can provide a name or we can suggest one based on your goals)"
            )
        return "What's the name of your project?"
    if not state.category:
        return "What category does this project fall into? (tech, business, community, creative, etc.)"
    if not state.goals:
        return "What are your main goals for this project?"
    if state.owner is None or not state.owner.name:
        state.owner = Owner(name=DEFAULT_OWNER)
    return None


def name_from_goals(goals: list[Goal]) -> str:
    """First three words of the first goal, capitalized."""
    words = " ".join(goals[0].description.split()[:3])
    return words.capitalize()


def _first_sentence(text: str) -> str:
    return _SENTENCE_SPLIT.split(text, maxsplit=1)[0].strip()


def extract_heuristic(user_input: str, state: CollectionState) -> dict[str, Any]:
    """Keyword and regex extraction, shaped like the LLM's answer."""
    extracted: dict[str, Any] = {}
    lowered = user_input.lower()
    sentence = _first_sentence(user_input)

    if not state.project_name:
        if match := _NAMED_RE.search(user_input) or _BUILD_RE.search(user_input):
            extracted["project_name"] = match.group(1).strip()
        elif (
            5 < len(sentence) <= 60
            and not sentence.lower().startswith(("i want", "my goal", "my name", "i am"))
            and not any(w in sentence.lower() for w in ("goal", "want to", "aim to"))
        ):
            extracted["project_name"] = sentence

    if not state.category:
        for keyword, category in CATEGORY_KEYWORDS:
            if re.search(rf"\b{keyword}s?\b", lowered):
                extracted["category"] = category
                break

    if any(marker in lowered for marker in ("goal", "want to", "aim to")) and len(sentence) > 10:
        extracted["goals"] = [{"description": sentence, "priority": "medium"}]

    for pattern in _OWNER_PATTERNS:
        if match := pattern.search(user_input):
            extracted["owner"] = {"name": match.group(1).strip()}
            break

    return extracted


def merge_extracted(
    state: CollectionState,
    extracted: dict[str, Any],
    *,
    original_name: str | None = None,
) -> CollectionState:
    """Merge newly extracted fields without overwriting what the user already gave."""
    name = extracted.get("project_name")
    if isinstance(name, str) and name.strip() and not (original_name or "").strip():
        state.project_name = name.strip()

    category = extracted.get("category")
    if isinstance(category, str) and not state.category and category.strip().lower() in VALID_CATEGORIES:
        state.category = category.strip().lower()

    new_goals = [g for g in extracted.get("goals") or [] if isinstance(g, dict) and g.get("description")]
    if new_goals:
        existing_ids = {g.id for g in state.goals}
        existing_descriptions = {g.description.strip().lower() for g in state.goals}
        numbers = [int(m.group()) for g in state.goals if (m := _GOAL_NUMBER_RE.search(g.id))]
        next_number = max(numbers, default=0) + 1
        for raw in new_goals:
            key = str(raw["description"]).strip().lower()
            if key in existing_descriptions:
                continue
            goal_id = str(raw.get("id") or "")
            while not goal_id or goal_id in existing_ids:
                goal_id = f"goal_{next_number}"
                next_number += 1
            goal = Goal(
                id=goal_id,
                description=str(raw["description"]).strip(),
                priority=raw.get("priority"),
                measurable=bool(raw.get("measurable", False)),
            )
            state.goals.append(goal)
            existing_ids.add(goal_id)
            existing_descriptions.add(key)

    owner = extracted.get("owner")
    if isinstance(owner, dict):
        fields = {k: v for k, v in owner.items() if k in ("name", "email", "role") and v}
        merged = {**(state.owner.model_dump(exclude_none=True) if state.owner else {}), **fields}
        if merged.get("name"):
            state.owner = Owner(**merged)
    elif isinstance(owner, str) and owner.strip():
        state.owner = Owner(name=owner.strip())

    constraints = extracted.get("constraints")
    if isinstance(constraints, list):
        state.constraints.extend(str(c) for c in constraints if c)

    return state
