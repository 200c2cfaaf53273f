"""Data model for audit trail records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from llm_governance.utils.masking import redact_sensitive_fields
from llm_governance.utils.time import to_iso

if TYPE_CHECKING:
    from llm_governance.engine.context import TransactionContext

# The raw model output is never persisted, only whether there was any.
OUTPUT_PRESENT_MARKER = "Generated Content Present"
NO_OUTPUT_MARKER = "No Output"


@dataclass(frozen=True)
class AuditEntry:
    timestamp: str
    user_id: str
    request_id: str
    risk_level: str | None
    risk_category: str | None
    model_version: str | None
    model_params: dict[str, Any]
    guardrail_decision: str | None
    justification: str
    input_redacted: list[dict[str, Any]] | None
    output: str

    @classmethod
    def from_context(cls, context: "TransactionContext") -> "AuditEntry":
        input_redacted = (
            [part.to_dict() for part in context.redacted_input]
            if context.redacted_input is not None
            else None
        )
        return cls(
            timestamp=to_iso(context.timestamp),
            user_id=context.user_id,
            request_id=context.request_id,
            risk_level=context.risk_level.value if context.risk_level else None,
            risk_category=context.risk_category,
            model_version=context.model_version,
            model_params=redact_sensitive_fields(dict(context.model_params)),
            guardrail_decision=(
                context.guardrail_decision.value if context.guardrail_decision else None
            ),
            justification=context.justification,
            input_redacted=input_redacted,
            output=(
                OUTPUT_PRESENT_MARKER
                if context.output is not None and context.output.has_content
                else NO_OUTPUT_MARKER
            ),
        )

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "timestamp": self.timestamp,
            "userId": self.user_id,
            "requestId": self.request_id,
            "riskLevel": self.risk_level,
            "riskCategory": self.risk_category,
            "modelVersion": self.model_version,
            "modelParams": self.model_params,
        }
        if self.guardrail_decision is not None:
            record["guardrailDecision"] = self.guardrail_decision
        record["justification"] = self.justification
        record["inputRedacted"] = self.input_redacted
        record["output"] = self.output
        return record
