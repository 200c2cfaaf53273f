"""Message fragments exchanged with the model backend."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Part:
    """One content fragment: free text, or a reference to a non-text payload."""

    text: str | None = None
    payload: Mapping[str, Any] | None = None

    @property
    def is_text(self) -> bool:
        return self.text is not None

    def with_text(self, text: str) -> "Part":
        return Part(text=text, payload=self.payload)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.payload or {})
        if self.text is not None:
            data["text"] = self.text
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Part":
        text = data.get("text")
        payload = {key: value for key, value in data.items() if key != "text"}
        if text is not None and not isinstance(text, str):
            text = str(text)
        return cls(text=text, payload=payload or None)


# Ordered sequence of fragments; order is significant.
Message = list[Part]


def coerce_message(value: object) -> Message:
    """Normalize the shapes a host typically holds into a list of parts.

    Accepts a string, a ``Part``, a mapping, or a sequence of those.
    """
    if isinstance(value, Part):
        return [value]
    if isinstance(value, str):
        return [Part(text=value)]
    if isinstance(value, Mapping):
        return [Part.from_dict(value)]
    if isinstance(value, Iterable):
        parts: Message = []
        for item in value:
            if isinstance(item, (list, tuple)):
                raise TypeError("Nested fragment sequences are not supported")
            parts.extend(coerce_message(item))
        return parts
    raise TypeError(f"Cannot build a message from {type(value).__name__}")


def message_text(parts: Sequence[Part] | None, separator: str = " ") -> str:
    """Join the text fragments of a message, skipping non-text fragments."""
    if not parts:
        return ""
    return separator.join(part.text for part in parts if part.text is not None)


@dataclass
class ModelResponse:
    """A completed model response.

    ``parts`` is None when the backend returned no content at all (for
    example a response cut short by a safety stop).
    """

    parts: list[Part] | None = None
    model_version: str | None = None
    finish_reason: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return message_text(self.parts)

    @property
    def has_content(self) -> bool:
        return self.parts is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "parts": [part.to_dict() for part in self.parts] if self.parts is not None else None,
            "modelVersion": self.model_version,
            "finishReason": self.finish_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelResponse":
        """Build a response from a flat ``parts`` payload or a candidates payload.

        Only the first candidate is considered when ``candidates`` is present.
        """
        model_version = data.get("modelVersion") or data.get("model_version")
        finish_reason = data.get("finishReason") or data.get("finish_reason")
        raw_parts: Any = None
        if "candidates" in data:
            candidates = data.get("candidates") or []
            if candidates:
                first = candidates[0] or {}
                finish_reason = finish_reason or first.get("finishReason")
                content = first.get("content")
                if content is not None:
                    raw_parts = content.get("parts")
        else:
            raw_parts = data.get("parts")
        parts = [Part.from_dict(item) for item in raw_parts] if raw_parts is not None else None
        return cls(parts=parts, model_version=model_version, finish_reason=finish_reason)

    @classmethod
    def merge(cls, chunks: Sequence["ModelResponse"]) -> "ModelResponse":
        """Combine streamed chunks into one response.

        Consecutive plain text fragments are concatenated; fragments carrying
        a payload keep their position unchanged.
        """
        merged: list[Part] | None = None
        model_version = None
        finish_reason = None
        for chunk in chunks:
            model_version = chunk.model_version or model_version
            finish_reason = chunk.finish_reason or finish_reason
            if chunk.parts is None:
                continue
            if merged is None:
                merged = []
            for part in chunk.parts:
                if (
                    part.is_text
                    and part.payload is None
                    and merged
                    and merged[-1].is_text
                    and merged[-1].payload is None
                ):
                    merged[-1] = merged[-1].with_text(merged[-1].text + part.text)
                else:
                    merged.append(part)
        return cls(parts=merged, model_version=model_version, finish_reason=finish_reason)
