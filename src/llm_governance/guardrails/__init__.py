"""Output guardrails applied to model responses."""

from .output import OutputValidator, OutputVerdict

__all__ = ["OutputValidator", "OutputVerdict"]
