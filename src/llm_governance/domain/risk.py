"""Risk levels, guardrail decisions and transaction phases."""

from __future__ import annotations

from enum import Enum


class RiskLevel(str, Enum):
    """Ordered risk classification: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    # str already defines the rich comparisons, so all four are overridden.
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_RANK = {
    RiskLevel.LOW: 0,
    RiskLevel.MEDIUM: 1,
    RiskLevel.HIGH: 2,
    RiskLevel.CRITICAL: 3,
}


class GuardrailDecision(str, Enum):
    APPROVED = "APPROVED"
    BLOCKED = "BLOCKED"
    FLAGGED_FOR_REVIEW = "FLAGGED_FOR_REVIEW"


class TransactionPhase(str, Enum):
    """Where a transaction is in the request/response pipeline."""

    CREATED = "CREATED"
    REDACTED = "REDACTED"
    CLASSIFIED = "CLASSIFIED"
    BLOCKED = "BLOCKED"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    ADMITTED = "ADMITTED"
    COMPLETED = "COMPLETED"
