"""Sensitive-key masking for opaque key-value payloads.

``redact_sensitive_fields`` replaces the values of credential-like keys in
nested dicts/lists. The audit layer applies it to model invocation
parameters so API keys passed alongside a request never reach the trail.
"""

from __future__ import annotations

import re

_MAX_REDACT_DEPTH = 20

# Whole key segments that mark a credential. ``apiKey``, ``api_key`` and
# ``x-api-key`` all split into segments whose adjacent pair joins to "apikey".
SENSITIVE_KEY_MARKERS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "apikey",
        "accesskey",
        "privatekey",
        "credential",
        "credentials",
        "authorization",
    }
)

_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_SEGMENT_SPLIT_RE = re.compile(r"[^a-zA-Z0-9]+")

# Control character pattern for log injection prevention.
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def _key_segments(key: str) -> list[str]:
    spaced = _CAMEL_BOUNDARY_RE.sub(r"\1_\2", _ACRONYM_BOUNDARY_RE.sub(r"\1_\2", key))
    return [segment.lower() for segment in _SEGMENT_SPLIT_RE.split(spaced) if segment]


def is_sensitive_key(key: str) -> bool:
    """True when a segment (or two adjacent segments) of ``key`` names a credential.

    ``maxOutputTokens`` is not sensitive: its segment is "tokens", not "token".
    """
    segments = _key_segments(key)
    if any(segment in SENSITIVE_KEY_MARKERS for segment in segments):
        return True
    return any(a + b in SENSITIVE_KEY_MARKERS for a, b in zip(segments, segments[1:]))


def redact_sensitive_fields(
    value: object,
    *,
    mask: str = "***",
    depth: int = 0,
    max_depth: int = _MAX_REDACT_DEPTH,
) -> object:
    """Recursively replace sensitive values in dicts/lists.

    Keys are matched segment-wise by ``is_sensitive_key``
    (case-insensitive).  When ``max_depth`` is exceeded the entire
    sub-tree is replaced with *mask*.
    """
    if depth >= max_depth:
        return mask
    if isinstance(value, dict):
        redacted: dict[str, object] = {}
        for key, val in value.items():
            if isinstance(key, str) and is_sensitive_key(key):
                redacted[key] = mask
            else:
                redacted[key] = redact_sensitive_fields(
                    val, mask=mask, depth=depth + 1, max_depth=max_depth,
                )
        return redacted
    if isinstance(value, (list, tuple)):
        return [
            redact_sensitive_fields(
                item, mask=mask, depth=depth + 1, max_depth=max_depth,
            )
            for item in value
        ]
    return value


def sanitize_log_value(value: str) -> str:
    """Replace control characters (newlines, tabs, etc.) to prevent log injection."""
    return _CONTROL_CHAR_RE.sub("_", value)
