"""Secondary export of audit records to a collector endpoint (e.g. a SIEM)."""

from __future__ import annotations

from typing import Any, Protocol

import httpx


class AuditExporter(Protocol):
    def export(self, record: dict[str, Any]) -> None: ...

    def close(self) -> None: ...


class HttpAuditExporter:
    """POSTs each record as a JSON body; raises on transport or HTTP errors."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def export(self, record: dict[str, Any]) -> None:
        response = self._client.post(
            self._endpoint,
            json=record,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
