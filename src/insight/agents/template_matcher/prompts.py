"""Prompts for the Template Matcher agent."""

from __future__ import annotations

import json

from insight.templates import TEMPLATES

SYSTEM_PROMPT = """\
You are the Template Matcher for a project onboarding assistant.

## Role
Read the user's first description of their project and pick the project \
template that fits it best. Consider keywords, the kind of project, and its goals.

## Output Format
Respond with a single JSON object:

{
  "template_id": "one of the template ids you were given",
  "confidence": 0.0-1.0,
  "reasoning": "one sentence"
}
"""


def build_user_message(user_input: str, category: str | None) -> str:
    templates = [
        {
            "id": t.id,
            "name": t.name,
            "categories": [c.value for c in t.categories],
            "description": t.description,
        }
        for t in TEMPLATES
    ]
    payload: dict = {"templates": templates, "user_input": user_input}
    if category:
        payload["suggested_category"] = category
    return json.dumps(payload, indent=2)
