"""Sensitive-data redaction for outbound messages."""

from .redactor import DEFAULT_REDACTION_RULES, RedactionResult, RedactionRule, Redactor

__all__ = ["DEFAULT_REDACTION_RULES", "RedactionResult", "RedactionRule", "Redactor"]
