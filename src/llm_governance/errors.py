"""Exception types raised by the governance pipeline."""

from __future__ import annotations


class GovernanceError(Exception):
    """Base class for governance failures."""


class AuditWriteError(GovernanceError):
    """The durable audit record for a transaction could not be written.

    Audit persistence is a hard requirement: callers must treat this as a
    failed transaction rather than proceeding without a record.
    """

    def __init__(self, message: str, request_id: str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id


class TransactionStateError(GovernanceError):
    """A pipeline phase was invoked on a transaction in the wrong state."""
