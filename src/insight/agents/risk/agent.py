"""Risk assessor — risks, mitigations and severity."""

from __future__ import annotations

import logging

from insight.agents.base import BaseAgent, extract_json
from insight.agents.risk.prompts import SYSTEM_PROMPT, build_user_message
from insight.schemas.agents import AgentConfig, AgentResponse, AnalysisResult, RiskAssessmentResult, Severity
from insight.schemas.project import ProjectCategory, ProjectPayload

logger = logging.getLogger(__name__)

# (trigger words, mitigations); a risk collects every group it triggers
MITIGATION_RULES: list[tuple[tuple[str, ...], list[str]]] = [
    (("timeline",), [
        "Establish clear milestones and checkpoints",
        "Build buffer time into schedule",
        "Regular progress reviews",
    ]),
    (("scope",), [
        "Define clear project boundaries",
        "Implement change control process",
        "Regular stakeholder alignment",
    ]),
    (("resource", "ownership"), [
        "Assign clear roles and responsibilities",
        "Establish communication protocols",
        "Regular status updates",
    ]),
    (("technical", "complexity"), [
        "Proof of concept for complex features",
        "Technical architecture review",
        "Regular code reviews",
    ]),
    (("market", "competition"), [
        "Regular market research",
        "Competitive analysis",
        "Flexible strategy adaptation",
    ]),
]
DEFAULT_MITIGATIONS = ["Regular monitoring and review", "Contingency planning"]


class RiskAgent(BaseAgent):
    key = "risk"
    config = AgentConfig(
        name="Risk Assessor",
        description="Identifies risks and proposes mitigations",
        temperature=0.4,
        max_tokens=1200,
    )
    system_prompt = SYSTEM_PROMPT

    async def assess(self, project: ProjectPayload, analysis: AnalysisResult) -> AgentResponse[RiskAssessmentResult]:
        return await self._answer(
            lambda: self._complete_with_retry(
                build_user_message(project, analysis),
                lambda raw: self._parse(raw, project, analysis),
            ),
            lambda: self.heuristic_assess(project, analysis),
            confidence=lambda r: r.confidence,
            reasoning=lambda r: (
                f"Assessed {len(r.risks)} risks, "
                f"{sum(1 for s in r.severity.values() if s in ('high', 'critical'))} high or critical"
            ),
        )

    @staticmethod
    def _parse(raw: str, project: ProjectPayload, analysis: AnalysisResult) -> RiskAssessmentResult:
        data = extract_json(raw)
        data.setdefault("confidence", analysis.confidence)
        result = RiskAssessmentResult.model_validate(data)
        # Fill gaps so every risk has a mitigation list and a severity
        for risk in result.risks:
            result.mitigations.setdefault(risk, mitigations_for(risk))
            result.severity.setdefault(risk, severity_for(risk, project))
        return result

    @classmethod
    def heuristic_assess(cls, project: ProjectPayload, analysis: AnalysisResult) -> RiskAssessmentResult:
        risks = cls._risks(project, analysis)
        return RiskAssessmentResult(
            risks=risks,
            mitigations={risk: mitigations_for(risk) for risk in risks},
            severity={risk: severity_for(risk, project) for risk in risks},
            confidence=analysis.confidence,
        )

    @staticmethod
    def _risks(project: ProjectPayload, analysis: AnalysisResult) -> list[str]:
        risks = list(analysis.threats)

        if not project.timeline:
            risks.append("Unclear timeline may lead to scope creep and delays")
        else:
            days = project.timeline.duration_days
            if days is not None and days < 30 and len(project.goals) > 3:
                risks.append("Aggressive timeline with multiple goals may be unrealistic")

        if project.owner is None or not project.owner.name:
            risks.append("Lack of clear ownership may lead to accountability issues")
        if len(project.goals) > 5:
            risks.append("Too many goals may lead to resource dilution")
        if not project.constraints:
            risks.append("Lack of constraints may lead to scope creep")

        if project.category == ProjectCategory.TECH:
            risks.append("Technical complexity may lead to delays")
            risks.append("Dependency on external APIs or services")
        elif project.category == ProjectCategory.BUSINESS:
            risks.append("Market conditions may change")
            risks.append("Competition may intensify")

        # Threats and scope risks can repeat; keep first occurrence
        return list(dict.fromkeys(risks))


def mitigations_for(risk: str) -> list[str]:
    lowered = risk.lower()
    mitigations: list[str] = []
    for triggers, steps in MITIGATION_RULES:
        if any(t in lowered for t in triggers):
            mitigations.extend(steps)
    return mitigations or list(DEFAULT_MITIGATIONS)


def severity_for(risk: str, project: ProjectPayload) -> Severity:
    lowered = risk.lower()
    if "critical" in lowered or "unclear timeline" in lowered or "lack of" in lowered:
        severity: Severity = "high"
    elif "may lead" in lowered or "complexity" in lowered:
        severity = "medium"
    else:
        severity = "low"

    if "timeline" in lowered and project.timeline is None:
        severity = "critical"
    if "ownership" in lowered and project.owner is None:
        severity = "high"
    return severity
