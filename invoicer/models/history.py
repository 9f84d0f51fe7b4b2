from __future__ import annotations
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from .common import utcnow
from .document import Document, DocumentKind


class HistoryEntry(BaseModel):
    """One row of the local history: {number, type, date, client, amount, payload}."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    number: str
    kind: DocumentKind = Field(default="invoice", alias="type")
    date: datetime = Field(default_factory=utcnow)
    client: str = "Unnamed Client"
    amount: str = ""  # display string, e.g. "$129.20"
    payload: Document

    @property
    def status(self) -> str:
        return self.payload.status

    @property
    def receipt_number(self) -> str | None:
        return self.payload.receipt_number

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
