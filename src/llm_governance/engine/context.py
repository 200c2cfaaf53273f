"""Per-transaction state shared by the request and response phases."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from llm_governance.domain.messages import Message, ModelResponse
from llm_governance.domain.risk import GuardrailDecision, RiskLevel, TransactionPhase
from llm_governance.utils.time import utc_now

JUSTIFICATION_SEPARATOR = "; "


@dataclass
class TransactionContext:
    """Mutable record of one request/response pair.

    Owned by the engine for the lifetime of the transaction and handed to
    the audit sink by reference. ``justification`` only ever grows.
    """

    request_id: str
    user_id: str
    original_input: Message
    timestamp: datetime = field(default_factory=utc_now)
    redacted_input: Message | None = None
    risk_level: RiskLevel | None = None
    risk_category: str | None = None
    model_version: str | None = None
    model_params: dict[str, Any] = field(default_factory=dict)
    output: ModelResponse | None = None
    guardrail_decision: GuardrailDecision | None = None
    justification: str = ""
    phase: TransactionPhase = TransactionPhase.CREATED
    supersedes_request_id: str | None = None

    def add_justification(self, note: str) -> None:
        if not note:
            return
        if self.justification:
            self.justification = f"{self.justification}{JUSTIFICATION_SEPARATOR}{note}"
        else:
            self.justification = note
