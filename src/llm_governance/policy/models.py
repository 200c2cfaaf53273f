"""Policy configuration models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from llm_governance.domain.risk import RiskLevel
from llm_governance.utils.regex_safety import compile_safe_pattern


def _ensure_list(v: Any) -> list:
    """Convert None to empty list, pass through lists."""
    if v is None:
        return []
    return v


class GovernancePolicy(BaseModel):
    """Process-wide switches consulted by the orchestrator.

    Frozen: the policy is fixed when the engine is built and never changes
    for the lifetime of the process.
    """

    model_config = ConfigDict(frozen=True)

    pii_redaction_enabled: bool = Field(default=True)
    block_high_risk: bool = Field(default=False)
    require_human_review_for_high_risk: bool = Field(default=True)


class RedactionRuleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str = Field(min_length=1)
    pattern: str = Field(min_length=1)
    placeholder: str = Field(min_length=1)
    reason: str = Field(min_length=1)

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, v: str) -> str:
        compile_safe_pattern(v, "redaction")
        return v


class RiskRuleConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str = Field(min_length=1)
    keywords: tuple[str, ...] = Field(min_length=1)
    level: RiskLevel = Field(default=RiskLevel.HIGH)

    @field_validator("keywords", mode="before")
    @classmethod
    def _validate_keywords(cls, v: Any) -> Any:
        if isinstance(v, str):
            return (v,)
        return v

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(k.casefold() for k in v if k.strip())
        if not normalized:
            raise ValueError("risk rule keywords must not be blank")
        return normalized


class PolicyConfig(BaseModel):
    version: int = Field(default=1)
    defaults: GovernancePolicy = Field(default_factory=GovernancePolicy)
    redaction_rules: list[RedactionRuleConfig] = Field(default_factory=list)
    risk_rules: list[RiskRuleConfig] = Field(default_factory=list)
    output_leak_kinds: list[str] = Field(default_factory=lambda: ["email"])

    @field_validator("redaction_rules", "risk_rules", mode="before")
    @classmethod
    def _validate_lists(cls, v: Any) -> list:
        return _ensure_list(v)

    @field_validator("output_leak_kinds", mode="before")
    @classmethod
    def _validate_leak_kinds(cls, v: Any) -> list:
        if v is None:
            return ["email"]
        return v

    @classmethod
    def from_yaml(cls, data: dict[str, object]) -> "PolicyConfig":
        return cls.model_validate(data)

    def with_overrides(self, **overrides: bool | None) -> "PolicyConfig":
        """Return a copy whose policy switches are replaced by non-None overrides."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return self
        return self.model_copy(update={"defaults": self.defaults.model_copy(update=updates)})
