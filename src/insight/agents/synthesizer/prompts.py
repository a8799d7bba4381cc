"""Prompts for the Synthesizer agent."""

from __future__ import annotations

import json

from insight.schemas.agents import SynthesisInput
from insight.schemas.project import ProjectPayload

SYSTEM_PROMPT = """\
You are the Synthesizer, the last stage of a project advisory pipeline.

## Role
Combine the analysis, strategy, tactical plan, risk register and any external \
data into advice the project owner can act on. The recommendations, risks and \
action plan are assembled elsewhere; you write the framing around them.

## What to write
- **headline**: one sentence naming the single most important takeaway
- **summary**: 1-2 paragraphs summarizing the overall recommendations
- **suggestions**: 1-3 actionable suggestions. Each must be specific, say why \
it is relevant, and name its source (project data or which external data source)

## Output Format
Respond with a single JSON object:

{
  "headline": "...",
  "summary": "...",
  "suggestions": [
    {"suggestion": "...", "reason": "...", "source": "..."}
  ]
}
"""


def build_user_message(project: ProjectPayload, inputs: SynthesisInput) -> str:
    payload = {
        "project": {
            "name": project.project_name,
            "category": project.category.value,
            "goals": [g.description for g in project.goals],
            "owner": project.owner.name,
            "constraints": [c.description for c in project.constraints],
        },
        "analysis": inputs.analysis.model_dump(mode="json"),
        "strategy": inputs.strategy.model_dump(mode="json"),
        "tactical": {"actions": inputs.tactical.actions},
        "risks": inputs.risks.risks,
        "external_data": [
            {"source": d.source, "data": d.data} for d in inputs.external_data
        ] or "No external data available",
    }
    return json.dumps(payload, indent=2, default=str)
