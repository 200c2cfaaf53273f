"""Safety checks for operator-supplied regular expressions."""

from __future__ import annotations

import re

_MAX_POLICY_REGEX_LENGTH = 256
_BACKREFERENCE_PATTERN = re.compile(r"\\[1-9]")
_NESTED_QUANTIFIER_PATTERN = re.compile(
    r"\((?:[^()\\]|\\.)*[+*](?:[^()\\]|\\.)*\)\s*(?:[+*]|\{\d+(?:,\d*)?\})"
)
_LOOKBEHIND_TOKENS = ("(?<=", "(?<!")


def validate_pattern_safety(pattern: str, label: str) -> None:
    if len(pattern) > _MAX_POLICY_REGEX_LENGTH:
        raise ValueError(
            f"Unsafe regex in {label} policy pattern '{pattern}': exceeds "
            f"{_MAX_POLICY_REGEX_LENGTH} characters"
        )
    if any(token in pattern for token in _LOOKBEHIND_TOKENS):
        raise ValueError(
            f"Unsafe regex in {label} policy pattern '{pattern}': look-behind is not allowed"
        )
    if _BACKREFERENCE_PATTERN.search(pattern):
        raise ValueError(
            f"Unsafe regex in {label} policy pattern '{pattern}': "
            "backreferences are not allowed"
        )
    if _NESTED_QUANTIFIER_PATTERN.search(pattern):
        raise ValueError(
            f"Unsafe regex in {label} policy pattern '{pattern}': "
            "nested quantifiers are not allowed"
        )


def compile_safe_pattern(pattern: str, label: str) -> re.Pattern[str]:
    validate_pattern_safety(pattern, label)
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"Invalid regex in {label} policy pattern '{pattern}': {exc}") from exc
