"""Append-only audit trail for governed transactions."""

from .exporter import HttpAuditExporter
from .models import NO_OUTPUT_MARKER, OUTPUT_PRESENT_MARKER, AuditEntry
from .reader import count_entries, iter_entries, tail_entries
from .sink import AuditSink

__all__ = [
    "NO_OUTPUT_MARKER",
    "OUTPUT_PRESENT_MARKER",
    "AuditEntry",
    "AuditSink",
    "HttpAuditExporter",
    "count_entries",
    "iter_entries",
    "tail_entries",
]
