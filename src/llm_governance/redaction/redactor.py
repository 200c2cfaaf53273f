"""Pattern-based redaction of message text.

Each rule kind owns one regex, one placeholder token and one reason label.
Rules run in table order against every text fragment; all matches of one
kind are replaced before the next kind is tried, so a fragment can be
rewritten by several kinds in sequence. Non-text fragments pass through
untouched and the input message is never mutated.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from llm_governance.domain.messages import Message, Part
from llm_governance.policy.models import RedactionRuleConfig


@dataclass(frozen=True)
class RedactionRule:
    kind: str
    regex: re.Pattern[str]
    placeholder: str
    reason: str

    @classmethod
    def from_config(cls, config: RedactionRuleConfig) -> "RedactionRule":
        # Safety of operator patterns is checked when the config is validated.
        return cls(
            kind=config.kind,
            regex=re.compile(config.pattern),
            placeholder=config.placeholder,
            reason=config.reason,
        )


DEFAULT_REDACTION_RULES: tuple[RedactionRule, ...] = (
    RedactionRule(
        kind="email",
        regex=re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
        placeholder="[REDACTED_EMAIL]",
        reason="Email PII detected",
    ),
    RedactionRule(
        kind="phone",
        regex=re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b"),
        placeholder="[REDACTED_PHONE]",
        reason="Phone PII detected",
    ),
    RedactionRule(
        kind="employee_id",
        regex=re.compile(r"\bEMP-\d{4,}\b"),
        placeholder="[REDACTED_EMP_ID]",
        reason="Employee ID detected",
    ),
    RedactionRule(
        kind="credit_card",
        regex=re.compile(r"\b(?:\d{4}[- ]?){3}\d{4}\b"),
        placeholder="[REDACTED_CREDIT_CARD]",
        reason="Credit Card detected",
    ),
    RedactionRule(
        kind="project_codeword",
        regex=re.compile(r"\bPROJECT-[A-Z0-9]+\b"),
        placeholder="[REDACTED_PROJECT_CODE]",
        reason="Project Codeword detected",
    ),
)


@dataclass(frozen=True)
class RedactionResult:
    message: Message
    was_redacted: bool
    reasons: tuple[str, ...]


class Redactor:
    def __init__(self, rules: Iterable[RedactionRule] | None = None) -> None:
        self._rules: tuple[RedactionRule, ...] = (
            tuple(rules) if rules is not None else DEFAULT_REDACTION_RULES
        )
        kinds = [rule.kind for rule in self._rules]
        if len(kinds) != len(set(kinds)):
            raise ValueError(f"Duplicate redaction rule kinds: {kinds}")

    @classmethod
    def with_extra_rules(cls, extra: Sequence[RedactionRuleConfig]) -> "Redactor":
        """Built-in rules followed by operator-configured ones."""
        return cls((*DEFAULT_REDACTION_RULES, *(RedactionRule.from_config(c) for c in extra)))

    @property
    def rules(self) -> tuple[RedactionRule, ...]:
        return self._rules

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(rule.kind for rule in self._rules)

    def rules_for(self, kinds: Iterable[str]) -> tuple[RedactionRule, ...]:
        wanted = set(kinds)
        unknown = wanted - set(self.kinds)
        if unknown:
            raise ValueError(f"Unknown redaction kinds: {sorted(unknown)}")
        return tuple(rule for rule in self._rules if rule.kind in wanted)

    def redact(self, message: Sequence[Part]) -> RedactionResult:
        fired: set[str] = set()
        redacted: Message = []
        for part in message:
            if part.text is None:
                redacted.append(part)
                continue
            text = part.text
            for rule in self._rules:
                text, count = rule.regex.subn(rule.placeholder, text)
                if count:
                    fired.add(rule.kind)
            redacted.append(part if text == part.text else part.with_text(text))

        # Reasons follow rule order, not discovery order.
        reasons = tuple(rule.reason for rule in self._rules if rule.kind in fired)
        return RedactionResult(message=redacted, was_redacted=bool(fired), reasons=reasons)

    def detect(self, text: str, kinds: Iterable[str] | None = None) -> list[str]:
        """Return the kinds whose pattern occurs in ``text``, in rule order."""
        rules = self._rules if kinds is None else self.rules_for(kinds)
        return [rule.kind for rule in rules if rule.regex.search(text)]
