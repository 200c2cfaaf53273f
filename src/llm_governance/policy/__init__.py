"""Policy configuration and loading."""

from .loader import load_policy
from .models import GovernancePolicy, PolicyConfig, RedactionRuleConfig, RiskRuleConfig

__all__ = [
    "GovernancePolicy",
    "PolicyConfig",
    "RedactionRuleConfig",
    "RiskRuleConfig",
    "load_policy",
]
