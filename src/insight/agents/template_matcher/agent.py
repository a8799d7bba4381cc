"""Template Matcher — picks the onboarding template for a new project."""

from __future__ import annotations

import logging

from insight.agents.base import BaseAgent, extract_json
from insight.agents.template_matcher.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import AgentConfig, AgentResponse, TemplateMatchResult
from insight.templates import DEFAULT_TEMPLATE_ID, TEMPLATES, get_template

logger = logging.getLogger(__name__)

MIN_MATCH_SCORE = 0.3


class TemplateMatcherAgent(BaseAgent):
    key = "template_matcher"
    config = AgentConfig(
        name="Template Matcher",
        description="Analyzes user input and recommends the best project template",
        temperature=0.3,
        max_tokens=500,
    )
    system_prompt = SYSTEM_PROMPT

    async def match(self, user_input: str, category: str | None = None) -> AgentResponse[TemplateMatchResult]:
        return await self._answer(
            lambda: self._complete_with_retry(
                build_user_message(user_input, category), self._parse,
            ),
            lambda: self.heuristic_match(user_input, category),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: r.reasoning,
        )

    def _parse(self, raw: str) -> TemplateMatchResult:
        data = extract_json(raw)
        template = get_template(str(data.get("template_id", "")).strip().lower())
        if template is None:
            # Unknown id: let the heuristic decide
            raise ValueError(f"Unknown template id: {data.get('template_id')!r}")
        return TemplateMatchResult(
            template_id=template.id,
            confidence=data.get("confidence", 0.8),
            reasoning=data.get("reasoning") or f'Matched "{template.name}" template based on user input analysis',
            suggested_fields=template.required_fields,
        )

    @staticmethod
    def heuristic_match(user_input: str, category: str | None = None) -> TemplateMatchResult:
        """Score every template by category and keyword overlap."""
        text = user_input.lower()
        scored = []
        for template in TEMPLATES:
            score = 0.0
            if category and category in template.categories:
                score += 0.5
            keywords = template.keywords()
            matches = sum(1 for kw in keywords if kw in text)
            score += (matches / len(keywords)) * 0.5
            scored.append((score, template))

        # Stable sort keeps catalogue order on ties
        scored.sort(key=lambda pair: pair[0], reverse=True)
        best_score, best = scored[0]
        logger.debug("Template scores: %s", [(t.id, round(s, 3)) for s, t in scored])

        if best_score < MIN_MATCH_SCORE:
            default = get_template(DEFAULT_TEMPLATE_ID)
            return TemplateMatchResult(
                template_id=default.id,
                confidence=0.5,
                reasoning="No strong match found, using default template",
                suggested_fields=default.required_fields,
            )

        return TemplateMatchResult(
            template_id=best.id,
            confidence=min(best_score, 1.0),
            reasoning=f'Matched "{best.name}" based on category and keyword analysis',
            suggested_fields=best.required_fields,
        )
