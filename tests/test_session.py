from __future__ import annotations

import logging
from pathlib import Path

import pytest

from llm_governance.approval import ApprovalRequest
from llm_governance.audit.reader import iter_entries
from llm_governance.domain.messages import ModelResponse, Part
from llm_governance.domain.risk import GuardrailDecision
from llm_governance.engine.orchestrator import HIGH_RISK_BLOCK_ERROR, review_banner
from llm_governance.session import (
    STATUS_BLOCKED,
    STATUS_COMPLETED,
    STATUS_OUTPUT_BLOCKED,
    STATUS_REJECTED,
    USER_REJECTED_ERROR,
    GovernedSession,
)


class RecordingModel:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls: list[tuple[list[Part], str, dict]] = []

    def __call__(self, message, model_id, params) -> ModelResponse:
        self.calls.append((message, model_id, params))
        return ModelResponse(parts=[Part(text=self.reply)], model_version=model_id)


def _approver(answer: bool, seen: list[ApprovalRequest] | None = None):
    def decide(request: ApprovalRequest) -> bool:
        if seen is not None:
            seen.append(request)
        return answer

    return decide


def test_send_low_risk_completes(engine) -> None:
    model = RecordingModel("All good.")
    session = GovernedSession(engine, _approver(False))

    result = session.send("Ping bob@corp.com about lunch", "model-v1", {"temperature": 0}, model)

    assert result.status == STATUS_COMPLETED
    assert result.error is None
    [(message, model_id, params)] = model.calls
    assert message == [Part(text="Ping [REDACTED_EMAIL] about lunch")]
    assert model_id == "model-v1"
    assert params == {"temperature": 0}
    assert result.response.decision is GuardrailDecision.APPROVED


def test_send_approved_high_risk_is_flagged(engine, audit_path: Path) -> None:
    seen: list[ApprovalRequest] = []
    model = RecordingModel("Take two aspirin.")
    session = GovernedSession(engine, _approver(True, seen))

    result = session.send("medical diagnosis please", "model-v1", None, model)

    assert result.status == STATUS_COMPLETED
    [request] = seen
    assert request.risk_category == "Medical Advice"
    assert result.context.supersedes_request_id == request.request_id
    assert result.response.response.text == review_banner("Medical Advice") + "Take two aspirin."
    [record] = list(iter_entries(audit_path))
    assert record["guardrailDecision"] == "FLAGGED_FOR_REVIEW"
    assert f"Human approval granted for request {request.request_id}" in record["justification"]


def test_send_rejected_never_calls_model(engine, audit_path: Path) -> None:
    model = RecordingModel("unused")
    session = GovernedSession(engine, _approver(False))

    result = session.send("fire employee 7", "model-v1", None, model)

    assert result.status == STATUS_REJECTED
    assert result.error == USER_REJECTED_ERROR
    assert model.calls == []
    assert list(iter_entries(audit_path)) == []


def test_send_blocked_by_policy(engine_factory, audit_path: Path) -> None:
    model = RecordingModel("unused")
    session = GovernedSession(engine_factory(block_high_risk=True), _approver(True))

    result = session.send("share the secret", "model-v1", None, model)

    assert result.status == STATUS_BLOCKED
    assert result.error == HIGH_RISK_BLOCK_ERROR
    assert model.calls == []
    [record] = list(iter_entries(audit_path))
    assert record["guardrailDecision"] == "BLOCKED"


def test_send_output_blocked(engine) -> None:
    session = GovernedSession(engine, _approver(False))

    result = session.send("who runs payroll?", "model-v1", None, RecordingModel("pay@corp.com"))

    assert result.status == STATUS_OUTPUT_BLOCKED
    assert result.error == "Output blocked: sensitive data detected in output"


def test_stream_passes_chunks_then_audits(engine, audit_path: Path) -> None:
    session = GovernedSession(engine, _approver(False))
    request = session.admit("tell me a joke", "model-v1")
    chunks = [
        ModelResponse(parts=[Part(text="Why did ")]),
        ModelResponse(parts=[Part(text="the chicken cross?")], finish_reason="STOP"),
    ]

    monitor = session.stream(request.context, chunks)
    received = list(monitor)

    assert received == chunks
    assert monitor.outcome is not None
    assert monitor.outcome.decision is GuardrailDecision.APPROVED
    assert request.context.output.text == "Why did the chicken cross?"
    [record] = list(iter_entries(audit_path))
    assert record["output"] == "Generated Content Present"


def test_stream_violation_is_logged_not_enforced(
    engine, audit_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="llm_governance.session")
    session = GovernedSession(engine, _approver(False))
    request = session.admit("contact?", "model-v1")
    chunks = [ModelResponse(parts=[Part(text="mail ops@")]), ModelResponse(parts=[Part(text="corp.com")])]

    received = list(session.stream(request.context, chunks))

    assert len(received) == 2
    assert f"GOVERNANCE_VIOLATION request_id={request.context.request_id}" in caplog.text
    [record] = list(iter_entries(audit_path))
    assert record["guardrailDecision"] == "BLOCKED"


def test_stream_not_audited_until_exhausted(engine, audit_path: Path) -> None:
    session = GovernedSession(engine, _approver(False))
    request = session.admit("hello", "model-v1")
    monitor = iter(session.stream(request.context, [ModelResponse(parts=[Part(text="hi")])]))

    next(monitor)
    assert list(iter_entries(audit_path)) == []
