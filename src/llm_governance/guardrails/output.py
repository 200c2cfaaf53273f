"""Guardrail validation of generated output."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from llm_governance.domain.messages import ModelResponse
from llm_governance.domain.risk import GuardrailDecision, RiskLevel
from llm_governance.redaction.redactor import Redactor

SENSITIVE_OUTPUT_REASON = "sensitive data detected in output"
HIGH_RISK_REVIEW_REASON = "High risk use case requires human review"


@dataclass(frozen=True)
class OutputVerdict:
    decision: GuardrailDecision
    reason: str | None = None
    leaked_kinds: tuple[str, ...] = ()


class OutputValidator:
    """Checks a response for leaked sensitive data and high-risk review.

    The leak scan reuses the redaction patterns selected by ``leak_kinds``
    and runs regardless of the request's risk level.
    """

    def __init__(
        self,
        redactor: Redactor | None = None,
        leak_kinds: Iterable[str] = ("email",),
    ) -> None:
        self._redactor = redactor or Redactor()
        self._leak_kinds = tuple(leak_kinds)
        # Fail at construction on unknown kinds rather than per response.
        self._redactor.rules_for(self._leak_kinds)

    def validate(self, response: ModelResponse, risk_level: RiskLevel) -> OutputVerdict:
        if not response.has_content:
            return OutputVerdict(GuardrailDecision.APPROVED)

        leaked = self._redactor.detect(response.text, self._leak_kinds)
        if leaked:
            return OutputVerdict(
                GuardrailDecision.BLOCKED,
                SENSITIVE_OUTPUT_REASON,
                leaked_kinds=tuple(leaked),
            )

        if risk_level >= RiskLevel.HIGH:
            return OutputVerdict(GuardrailDecision.FLAGGED_FOR_REVIEW, HIGH_RISK_REVIEW_REASON)

        return OutputVerdict(GuardrailDecision.APPROVED)
