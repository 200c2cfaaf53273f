"""Request/response interception pipeline."""

from .context import TransactionContext
from .orchestrator import GovernanceEngine, RequestOutcome, ResponseOutcome

__all__ = ["GovernanceEngine", "RequestOutcome", "ResponseOutcome", "TransactionContext"]
