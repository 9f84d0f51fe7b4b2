from __future__ import annotations
import logging
from typing import Optional

import httpx

from invoicer.models.document import Document, DocumentKind

logger = logging.getLogger(__name__)


class TransportError(RuntimeError):
    """Network failure or non-2xx answer from the document server."""


class DocumentApiClient:
    """The two request/response exchanges with the document server."""

    def __init__(self, base_url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self.http = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "DocumentApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _post(self, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self.http.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"POST {path} failed: {e}") from e
        if not resp.is_success:
            raise TransportError(f"POST {path} returned {resp.status_code}")
        return resp

    def render_pdf(self, doc: Document, kind: Optional[DocumentKind] = None) -> bytes:
        payload = doc.to_payload()
        payload["type"] = kind or doc.kind
        return self._post("/api/invoice", json=payload).content

    def next_receipt_number(self) -> str:
        resp = self._post("/api/receipt-number")
        try:
            data = resp.json()
        except ValueError as e:
            raise TransportError(f"Invalid receipt number response: {e}") from e
        number = (data.get("receiptNumber") or data.get("number")) if isinstance(data, dict) else None
        if not number:
            raise TransportError("Receipt number missing from response")
        return str(number)
