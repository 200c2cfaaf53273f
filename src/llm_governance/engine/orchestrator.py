"""Policy orchestration of the request and response phases.

Request phase: redact -> classify -> gate (block / needs approval / admit).
Response phase: validate -> audit -> decision, annotating flagged output.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from llm_governance.approval import ApprovalRequest
from llm_governance.audit.sink import AuditSink
from llm_governance.classification.classifier import RiskClassifier
from llm_governance.domain.messages import ModelResponse, Part
from llm_governance.domain.risk import GuardrailDecision, RiskLevel, TransactionPhase
from llm_governance.engine.context import TransactionContext
from llm_governance.errors import TransactionStateError
from llm_governance.guardrails.output import OutputValidator
from llm_governance.policy.models import GovernancePolicy
from llm_governance.redaction.redactor import Redactor
from llm_governance.utils.masking import sanitize_log_value
from llm_governance.utils.time import utc_now

logger = logging.getLogger(__name__)

HIGH_RISK_BLOCK_ERROR = "Request blocked due to High Risk policy."
OUTPUT_BLOCK_PREFIX = "Output blocked: "


def review_banner(risk_category: str | None) -> str:
    return (
        "[GOVERNANCE WARNING: This output was flagged for human review due to "
        f"High Risk category: {risk_category or 'Unknown'}]\n\n"
    )


@dataclass
class RequestOutcome:
    context: TransactionContext
    proceed: bool
    requires_approval: bool = False
    error: str | None = None

    @property
    def message(self) -> list[Part]:
        """The message the host should send to the model."""
        if self.context.redacted_input is not None:
            return self.context.redacted_input
        return self.context.original_input

    @property
    def approval_request(self) -> ApprovalRequest | None:
        if not self.requires_approval:
            return None
        return ApprovalRequest(
            risk_level=self.context.risk_level or RiskLevel.HIGH,
            risk_category=self.context.risk_category or "Unknown Category",
            justification=self.context.justification or "High Risk Detected",
            request_id=self.context.request_id,
        )


@dataclass
class ResponseOutcome:
    response: ModelResponse
    proceed: bool
    decision: GuardrailDecision
    error: str | None = None


class GovernanceEngine:
    """Owns the policy and sequences the pipeline for each transaction.

    Holds no per-transaction state, so one engine can serve any number of
    concurrent callers; each transaction travels in its own
    ``TransactionContext``.
    """

    def __init__(
        self,
        policy: GovernancePolicy,
        audit_sink: AuditSink,
        *,
        redactor: Redactor | None = None,
        classifier: RiskClassifier | None = None,
        output_validator: OutputValidator | None = None,
        user_id: str | Callable[[], str] = "unknown_user",
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._policy = policy
        self._audit_sink = audit_sink
        self._redactor = redactor or Redactor()
        self._classifier = classifier or RiskClassifier()
        self._output_validator = output_validator or OutputValidator(self._redactor)
        self._user_id = user_id
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))

    @property
    def policy(self) -> GovernancePolicy:
        return self._policy

    @property
    def redactor(self) -> Redactor:
        return self._redactor

    @property
    def classifier(self) -> RiskClassifier:
        return self._classifier

    @property
    def audit_sink(self) -> AuditSink:
        return self._audit_sink

    def _current_user(self) -> str:
        if callable(self._user_id):
            return self._user_id()
        return self._user_id

    def intercept_request(
        self,
        message: Sequence[Part],
        model_id: str,
        params: Mapping[str, Any] | None = None,
        *,
        approval_granted: bool = False,
        supersedes: str | None = None,
    ) -> RequestOutcome:
        original = list(message)
        context = TransactionContext(
            request_id=self._id_factory(),
            user_id=self._current_user(),
            original_input=original,
            timestamp=utc_now(),
            model_version=model_id,
            model_params=dict(params or {}),
            supersedes_request_id=supersedes,
        )

        if self._policy.pii_redaction_enabled:
            result = self._redactor.redact(original)
            context.redacted_input = result.message
            if result.was_redacted:
                context.add_justification("PII Redacted: " + ", ".join(result.reasons))
            context.phase = TransactionPhase.REDACTED
        else:
            context.redacted_input = original

        classification = self._classifier.classify(context.redacted_input)
        context.risk_level = classification.level
        context.risk_category = classification.category
        context.phase = TransactionPhase.CLASSIFIED

        high_risk = classification.level >= RiskLevel.HIGH

        if high_risk and self._policy.block_high_risk:
            context.guardrail_decision = GuardrailDecision.BLOCKED
            context.phase = TransactionPhase.BLOCKED
            self._audit_sink.log(context)
            self._log_request(context, "blocked")
            return RequestOutcome(context, proceed=False, error=HIGH_RISK_BLOCK_ERROR)

        if high_risk and self._policy.require_human_review_for_high_risk:
            if not approval_granted:
                context.phase = TransactionPhase.NEEDS_APPROVAL
                self._log_request(context, "needs_approval")
                return RequestOutcome(context, proceed=False, requires_approval=True)
            note = "Human approval granted"
            if supersedes:
                note = f"{note} for request {supersedes}"
            context.add_justification(note)

        context.phase = TransactionPhase.ADMITTED
        self._log_request(context, "admitted")
        return RequestOutcome(context, proceed=True)

    def intercept_response(
        self,
        context: TransactionContext,
        response: ModelResponse,
    ) -> ResponseOutcome:
        if context.phase in (
            TransactionPhase.BLOCKED,
            TransactionPhase.NEEDS_APPROVAL,
            TransactionPhase.COMPLETED,
        ):
            raise TransactionStateError(
                f"Transaction {context.request_id} cannot accept a response "
                f"in phase {context.phase.value}"
            )

        context.output = response
        verdict = self._output_validator.validate(response, context.risk_level or RiskLevel.LOW)
        context.guardrail_decision = verdict.decision
        if verdict.reason:
            context.add_justification(verdict.reason)

        self._audit_sink.log(context)
        context.phase = TransactionPhase.COMPLETED
        self._log_response(context)

        if verdict.decision is GuardrailDecision.BLOCKED:
            return ResponseOutcome(
                response,
                proceed=False,
                decision=verdict.decision,
                error=OUTPUT_BLOCK_PREFIX + (verdict.reason or ""),
            )

        if verdict.decision is GuardrailDecision.FLAGGED_FOR_REVIEW:
            _prepend_banner(response, review_banner(context.risk_category))

        return ResponseOutcome(response, proceed=True, decision=verdict.decision)

    def _log_request(self, context: TransactionContext, outcome: str) -> None:
        logger.info(
            "GOVERNANCE_REQUEST request_id=%s user_id=%s model=%s risk=%s category=%s outcome=%s",
            context.request_id,
            sanitize_log_value(context.user_id),
            sanitize_log_value(context.model_version or ""),
            context.risk_level.value if context.risk_level else None,
            context.risk_category,
            outcome,
        )

    def _log_response(self, context: TransactionContext) -> None:
        level = (
            logging.WARNING
            if context.guardrail_decision is GuardrailDecision.BLOCKED
            else logging.INFO
        )
        logger.log(
            level,
            "GOVERNANCE_RESPONSE request_id=%s decision=%s",
            context.request_id,
            context.guardrail_decision.value if context.guardrail_decision else None,
        )


def _prepend_banner(response: ModelResponse, banner: str) -> None:
    # Flagged responses always carry content; an empty part list gets a new fragment.
    parts = response.parts if response.parts is not None else []
    response.parts = parts
    if parts and parts[0].is_text:
        parts[0] = parts[0].with_text(banner + parts[0].text)
    else:
        parts.insert(0, Part(text=banner))
