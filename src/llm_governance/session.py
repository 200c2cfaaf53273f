"""Host-side driver tying the engine to a model call.

Handles the approval retry loop and, for streamed output, runs the response
phase once the stream is exhausted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from llm_governance.approval import Approver
from llm_governance.domain.messages import ModelResponse, Part, coerce_message
from llm_governance.engine.context import TransactionContext
from llm_governance.engine.orchestrator import GovernanceEngine, RequestOutcome, ResponseOutcome

logger = logging.getLogger(__name__)

ModelCall = Callable[[list[Part], str, dict[str, Any]], ModelResponse]

STATUS_COMPLETED = "completed"
STATUS_BLOCKED = "blocked"
STATUS_REJECTED = "rejected"
STATUS_OUTPUT_BLOCKED = "output_blocked"

USER_REJECTED_ERROR = "Request not approved by user."


@dataclass
class SessionResult:
    status: str
    request: RequestOutcome
    response: ResponseOutcome | None = None
    error: str | None = None

    @property
    def context(self) -> TransactionContext:
        return self.request.context


class GovernedSession:
    def __init__(self, engine: GovernanceEngine, approver: Approver) -> None:
        self._engine = engine
        self._approver = approver

    def admit(
        self,
        message: object,
        model_id: str,
        params: Mapping[str, Any] | None = None,
    ) -> RequestOutcome:
        """Run the request phase, asking the approver once if the engine requires it."""
        parts = coerce_message(message)
        outcome = self._engine.intercept_request(parts, model_id, params)
        approval = outcome.approval_request
        if approval is None:
            return outcome

        if not self._approver(approval):
            logger.info(
                "GOVERNANCE_APPROVAL request_id=%s approved=false", outcome.context.request_id
            )
            return outcome

        logger.info("GOVERNANCE_APPROVAL request_id=%s approved=true", outcome.context.request_id)
        return self._engine.intercept_request(
            parts,
            model_id,
            params,
            approval_granted=True,
            supersedes=outcome.context.request_id,
        )

    def send(
        self,
        message: object,
        model_id: str,
        params: Mapping[str, Any] | None,
        call_model: ModelCall,
    ) -> SessionResult:
        request = self.admit(message, model_id, params)
        if request.requires_approval:
            return SessionResult(STATUS_REJECTED, request, error=USER_REJECTED_ERROR)
        if not request.proceed:
            return SessionResult(STATUS_BLOCKED, request, error=request.error)

        response = call_model(request.message, model_id, dict(params or {}))
        outcome = self._engine.intercept_response(request.context, response)
        if not outcome.proceed:
            return SessionResult(STATUS_OUTPUT_BLOCKED, request, outcome, error=outcome.error)
        return SessionResult(STATUS_COMPLETED, request, outcome)

    def stream(
        self,
        context: TransactionContext,
        chunks: Iterable[ModelResponse],
    ) -> "StreamMonitor":
        return StreamMonitor(self._engine, context, chunks)


class StreamMonitor:
    """Passes streamed chunks straight through, then audits the whole response.

    Chunks reach the user before validation, so a BLOCKED verdict can only be
    recorded and reported, not enforced.
    """

    def __init__(
        self,
        engine: GovernanceEngine,
        context: TransactionContext,
        chunks: Iterable[ModelResponse],
    ) -> None:
        self._engine = engine
        self._context = context
        self._chunks = chunks
        self.outcome: ResponseOutcome | None = None

    def __iter__(self) -> Iterator[ModelResponse]:
        seen: list[ModelResponse] = []
        for chunk in self._chunks:
            seen.append(chunk)
            yield chunk

        self.outcome = self._engine.intercept_response(self._context, ModelResponse.merge(seen))
        if not self.outcome.proceed:
            logger.warning(
                "GOVERNANCE_VIOLATION request_id=%s decision=%s "
                "content streamed before it could be blocked",
                self._context.request_id,
                self.outcome.decision.value,
            )
