from __future__ import annotations

import pytest

from llm_governance.domain.messages import ModelResponse, Part, coerce_message, message_text
from llm_governance.domain.risk import RiskLevel


def test_coerce_message_shapes() -> None:
    assert coerce_message("hi") == [Part(text="hi")]
    assert coerce_message(Part(text="x")) == [Part(text="x")]
    assert coerce_message({"text": "a", "role": "user"}) == [
        Part(text="a", payload={"role": "user"})
    ]
    assert coerce_message(["a", {"inlineData": {"mimeType": "image/png"}}]) == [
        Part(text="a"),
        Part(payload={"inlineData": {"mimeType": "image/png"}}),
    ]


def test_coerce_message_rejects_unknown() -> None:
    with pytest.raises(TypeError):
        coerce_message(42)
    with pytest.raises(TypeError):
        coerce_message([["nested"]])


def test_message_text_skips_non_text() -> None:
    parts = [Part(text="a"), Part(payload={"fileData": {}}), Part(text="b")]
    assert message_text(parts) == "a b"
    assert message_text(None) == ""


def test_part_dict_round_trip_keeps_payload() -> None:
    part = Part.from_dict({"text": "t", "thought": True})
    assert part.payload == {"thought": True}
    assert part.to_dict() == {"thought": True, "text": "t"}


def test_response_from_candidates_payload() -> None:
    response = ModelResponse.from_dict(
        {
            "modelVersion": "model-v2",
            "candidates": [
                {"content": {"parts": [{"text": "one"}, {"text": "two"}]}, "finishReason": "STOP"},
                {"content": {"parts": [{"text": "ignored"}]}},
            ],
        }
    )
    assert response.text == "one two"
    assert response.model_version == "model-v2"
    assert response.finish_reason == "STOP"


def test_response_without_content() -> None:
    response = ModelResponse.from_dict({"candidates": [{"finishReason": "SAFETY"}]})
    assert response.parts is None
    assert response.has_content is False
    assert response.text == ""
    # An empty part list still counts as content.
    assert ModelResponse(parts=[]).has_content is True


def test_merge_concatenates_text_chunks() -> None:
    image = Part(payload={"inlineData": {}})
    merged = ModelResponse.merge(
        [
            ModelResponse(parts=[Part(text="Hel")], model_version="m"),
            ModelResponse(parts=None),
            ModelResponse(parts=[Part(text="lo"), image, Part(text="!")], finish_reason="STOP"),
        ]
    )
    assert merged.parts == [Part(text="Hello"), image, Part(text="!")]
    assert merged.model_version == "m"
    assert merged.finish_reason == "STOP"


def test_merge_of_empty_stream_has_no_content() -> None:
    assert ModelResponse.merge([]).has_content is False


def test_risk_levels_are_ordered() -> None:
    assert RiskLevel.LOW < RiskLevel.MEDIUM < RiskLevel.HIGH < RiskLevel.CRITICAL
    assert RiskLevel.CRITICAL >= RiskLevel.HIGH
    assert max([RiskLevel.HIGH, RiskLevel.LOW, RiskLevel.MEDIUM]) is RiskLevel.HIGH
    assert sorted([RiskLevel.CRITICAL, RiskLevel.LOW]) == [RiskLevel.LOW, RiskLevel.CRITICAL]


def test_merge_keeps_payload_on_text_fragments() -> None:
    thought = Part(text=" thinking", payload={"thought": True})
    merged = ModelResponse.merge(
        [
            ModelResponse(parts=[Part(text="Answer")]),
            ModelResponse(parts=[thought, Part(text=" more")]),
        ]
    )
    assert merged.parts == [Part(text="Answer"), thought, Part(text=" more")]
