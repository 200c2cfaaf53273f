"""Keyword rule engine assigning a risk level to a request."""

from .classifier import DEFAULT_RISK_RULES, Classification, RiskClassifier, RiskRule

__all__ = ["DEFAULT_RISK_RULES", "Classification", "RiskClassifier", "RiskRule"]
