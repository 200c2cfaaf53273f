"""Deterministic keyword classification of request risk.

The rule table is the whole model: every decision can be explained by
pointing at the first rule whose keyword occurred in the request text.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from llm_governance.domain.messages import Part, message_text
from llm_governance.domain.risk import RiskLevel
from llm_governance.policy.models import RiskRuleConfig

GENERAL_CATEGORY = "General"


@dataclass(frozen=True)
class RiskRule:
    category: str
    keywords: tuple[str, ...]
    level: RiskLevel = RiskLevel.HIGH

    def matches(self, buffer: str) -> str | None:
        for keyword in self.keywords:
            if keyword in buffer:
                return keyword
        return None

    @classmethod
    def from_config(cls, config: RiskRuleConfig) -> "RiskRule":
        return cls(category=config.category, keywords=config.keywords, level=config.level)


# Evaluation order is significant: the first matching rule wins.
DEFAULT_RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule(
        category="Proprietary Information",
        keywords=("confidential", "secret", "proprietary"),
    ),
    RiskRule(
        category="HR Decision",
        keywords=(
            "hr decision",
            "fire employee",
            "fire an employee",
            "fire the employee",
            "hiring",
            "layoff",
        ),
    ),
    RiskRule(
        category="Financial Advice",
        keywords=("financial advice", "invest", "stock"),
    ),
    RiskRule(
        category="Medical Advice",
        keywords=("medical", "diagnosis"),
    ),
)


@dataclass(frozen=True)
class Classification:
    level: RiskLevel
    category: str
    matched_keyword: str | None = None


class RiskClassifier:
    def __init__(self, rules: Iterable[RiskRule] | None = None) -> None:
        self._rules = tuple(rules) if rules is not None else DEFAULT_RISK_RULES

    @classmethod
    def with_extra_rules(cls, extra: Sequence[RiskRuleConfig]) -> "RiskClassifier":
        return cls((*DEFAULT_RISK_RULES, *(RiskRule.from_config(c) for c in extra)))

    @property
    def rules(self) -> tuple[RiskRule, ...]:
        return self._rules

    def classify(self, message: Sequence[Part]) -> Classification:
        buffer = message_text(message).casefold()
        for rule in self._rules:
            keyword = rule.matches(buffer)
            if keyword is not None:
                return Classification(rule.level, rule.category, keyword)
        return Classification(RiskLevel.LOW, GENERAL_CATEGORY)
