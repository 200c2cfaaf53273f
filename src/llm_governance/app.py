"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from llm_governance.approval import ConsoleApprover
from llm_governance.audit.exporter import HttpAuditExporter
from llm_governance.audit.sink import AuditSink
from llm_governance.classification.classifier import RiskClassifier
from llm_governance.config import Settings, load_settings
from llm_governance.engine.orchestrator import GovernanceEngine
from llm_governance.guardrails.output import OutputValidator
from llm_governance.logging_utils import get_logger
from llm_governance.policy.loader import load_policy
from llm_governance.policy.models import PolicyConfig
from llm_governance.redaction.redactor import Redactor
from llm_governance.session import GovernedSession


@dataclass
class AppContext:
    """Process-wide dependency container, built once at startup."""

    settings: Settings
    policy_config: PolicyConfig
    audit_sink: AuditSink
    engine: GovernanceEngine

    def console_session(self) -> GovernedSession:
        approver = ConsoleApprover(
            non_interactive_default=self.settings.approval.non_interactive_default,
        )
        return GovernedSession(self.engine, approver)

    def close(self) -> None:
        """Release the audit export worker without waiting on pending exports."""
        self.audit_sink.close(wait=False)


def load_policy_config(settings: Settings) -> PolicyConfig:
    """Policy file (or defaults) with environment overrides applied."""
    return load_policy(settings.policy.path).with_overrides(
        pii_redaction_enabled=settings.policy.pii_redaction_enabled,
        block_high_risk=settings.policy.block_high_risk,
        require_human_review_for_high_risk=settings.policy.require_human_review_for_high_risk,
    )


def build_redactor(policy_config: PolicyConfig) -> Redactor:
    return Redactor.with_extra_rules(policy_config.redaction_rules)


def build_app_context(settings: Settings | None = None) -> AppContext:
    settings = settings or load_settings()
    logger = get_logger(__name__)
    policy_config = load_policy_config(settings)

    exporter = None
    if settings.audit.endpoint:
        exporter = HttpAuditExporter(
            settings.audit.endpoint,
            timeout=settings.audit.endpoint_timeout_seconds,
        )
    audit_sink = AuditSink(settings.audit.path, exporter=exporter)

    redactor = build_redactor(policy_config)
    engine = GovernanceEngine(
        policy_config.defaults,
        audit_sink,
        redactor=redactor,
        classifier=RiskClassifier.with_extra_rules(policy_config.risk_rules),
        output_validator=OutputValidator(redactor, leak_kinds=policy_config.output_leak_kinds),
        user_id=settings.identity.user_id,
    )
    logger.info(
        "GOVERNANCE_READY audit_path=%s export=%s policy=%s block_high_risk=%s",
        audit_sink.path,
        "on" if exporter is not None else "off",
        settings.policy.path or "built-in",
        policy_config.defaults.block_high_risk,
    )
    return AppContext(
        settings=settings,
        policy_config=policy_config,
        audit_sink=audit_sink,
        engine=engine,
    )


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Cached singleton used by hosts that embed the governance layer."""
    return build_app_context()
