"""Read-side helpers for the JSONL audit trail."""

from __future__ import annotations

import json
import logging
from collections import deque
from collections.abc import Iterator
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def iter_entries(path: str | Path) -> Iterator[dict[str, Any]]:
    """Yield audit records in file order, skipping lines that are not JSON objects."""
    audit_path = Path(path).expanduser()
    if not audit_path.exists():
        return
    with audit_path.open("r", encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                logger.warning("Skipping malformed audit line %d in %s: %s", line_number, audit_path, exc)
                continue
            if isinstance(record, dict):
                yield record


def tail_entries(path: str | Path, limit: int = 10) -> list[dict[str, Any]]:
    if limit <= 0:
        return []
    return list(deque(iter_entries(path), maxlen=limit))


def count_entries(path: str | Path) -> int:
    return sum(1 for _ in iter_entries(path))
