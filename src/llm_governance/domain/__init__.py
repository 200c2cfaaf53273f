"""Domain types shared across the governance pipeline."""

from .messages import Message, ModelResponse, Part, coerce_message, message_text
from .risk import GuardrailDecision, RiskLevel, TransactionPhase

__all__ = [
    "GuardrailDecision",
    "Message",
    "ModelResponse",
    "Part",
    "RiskLevel",
    "TransactionPhase",
    "coerce_message",
    "message_text",
]
