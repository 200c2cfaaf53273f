"""Durable JSONL audit sink with optional best-effort forwarding."""

from __future__ import annotations

import json
import logging
import os
import queue
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from llm_governance.audit.exporter import AuditExporter
from llm_governance.audit.models import AuditEntry
from llm_governance.errors import AuditWriteError
from llm_governance.utils.serialization import json_default

if TYPE_CHECKING:
    from llm_governance.engine.context import TransactionContext

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE_NAME = "audit_trail.jsonl"
DEFAULT_MAX_PENDING_EXPORTS = 1000
_EXPORT_POLL_SECONDS = 0.1


class AuditSink:
    """Appends one JSON line per ``log`` call.

    The primary append is serialized by a lock so concurrent transactions
    never interleave partial lines, and a failed append raises
    ``AuditWriteError``. Forwarding to the optional exporter runs on a
    daemon worker fed by a bounded queue: its outcome is never awaited, a
    full queue drops the export, and failures are only logged.
    """

    def __init__(
        self,
        path: str | Path,
        exporter: AuditExporter | None = None,
        *,
        max_pending_exports: int = DEFAULT_MAX_PENDING_EXPORTS,
    ) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._exporter = exporter
        self._queue: queue.Queue[dict[str, Any]] = queue.Queue(maxsize=max_pending_exports)
        self._stop_event = threading.Event()
        self._discard_pending = False
        self._worker: threading.Thread | None = None
        if exporter is not None:
            self._worker = threading.Thread(
                target=self._export_loop,
                args=(exporter,),
                name="audit-export",
                daemon=True,
            )
            self._worker.start()
        self._ensure_directory()

    @classmethod
    def in_directory(
        cls,
        log_dir: str | Path,
        file_name: str = DEFAULT_AUDIT_FILE_NAME,
        exporter: AuditExporter | None = None,
    ) -> "AuditSink":
        return cls(Path(log_dir).expanduser() / file_name, exporter=exporter)

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_directory(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            # Surfaced as AuditWriteError on the first append.
            logger.warning("Failed to create audit directory %s: %s", self._path.parent, exc)

    def log(self, context: "TransactionContext") -> AuditEntry:
        entry = AuditEntry.from_context(context)
        record = entry.to_record()
        try:
            line = json.dumps(record, ensure_ascii=False, default=json_default) + "\n"
        except (TypeError, ValueError) as exc:
            raise AuditWriteError(
                f"Audit entry could not be serialized: {exc}", request_id=entry.request_id
            ) from exc

        try:
            with self._lock:
                with self._path.open("a", encoding="utf-8") as handle:
                    handle.write(line)
                    handle.flush()
                    os.fsync(handle.fileno())
        except OSError as exc:
            logger.error(
                "AUDIT_WRITE_FAILED request_id=%s path=%s error=%s",
                entry.request_id,
                self._path,
                exc,
            )
            raise AuditWriteError(
                f"Audit trail write failed for {self._path}: {exc}",
                request_id=entry.request_id,
            ) from exc

        logger.debug(
            "AUDIT_WRITE request_id=%s decision=%s",
            entry.request_id,
            entry.guardrail_decision,
        )
        self._forward(record)
        return entry

    @property
    def pending_exports(self) -> int:
        return self._queue.qsize()

    def _forward(self, record: dict[str, Any]) -> None:
        if self._worker is None:
            return
        if self._stop_event.is_set():
            logger.warning(
                "AUDIT_EXPORT_SKIPPED request_id=%s reason=closed", record.get("requestId")
            )
            return
        try:
            self._queue.put_nowait(record)
        except queue.Full:
            logger.warning(
                "AUDIT_EXPORT_SKIPPED request_id=%s reason=backlog_full limit=%d",
                record.get("requestId"),
                self._queue.maxsize,
            )

    def _export_loop(self, exporter: AuditExporter) -> None:
        try:
            while True:
                try:
                    record = self._queue.get(timeout=_EXPORT_POLL_SECONDS)
                except queue.Empty:
                    if self._stop_event.is_set():
                        return
                    continue
                if self._discard_pending:
                    continue
                self._export_safely(exporter, record)
        finally:
            exporter.close()

    @staticmethod
    def _export_safely(exporter: AuditExporter, record: dict[str, Any]) -> None:
        try:
            exporter.export(record)
        except httpx.HTTPError as exc:
            logger.warning(
                "AUDIT_EXPORT_FAILED request_id=%s error=%s", record.get("requestId"), exc
            )
        except Exception as exc:
            logger.warning(
                "AUDIT_EXPORT_FAILED request_id=%s error=%r", record.get("requestId"), exc
            )

    def close(self, wait: bool = True) -> None:
        """Stop the export worker.

        With ``wait`` the queued exports are delivered first; without it they
        are dropped and the call returns at once.
        """
        if self._stop_event.is_set():
            return
        if not wait:
            self._discard_pending = True
            if self._queue.qsize():
                logger.warning("AUDIT_EXPORT_DISCARDED pending=%d", self._queue.qsize())
        self._stop_event.set()
        if wait and self._worker is not None:
            self._worker.join()

    def __enter__(self) -> "AuditSink":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
