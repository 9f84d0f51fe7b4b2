from __future__ import annotations
from datetime import date, timedelta
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import parse_or_zero

DocumentKind = Literal["invoice", "receipt"]
DocumentStatus = Literal["pending", "paid"]

DUE_DAYS = 14
DEFAULT_PAYMENT_METHOD = "M-Pesa"


class ServiceLine(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    description: str = Field(default="", alias="desc")
    quantity: float = Field(default=0.0, alias="qty")
    unit_rate: float = Field(default=0.0, alias="rate")

    @field_validator("quantity", "unit_rate", mode="before")
    @classmethod
    def _numeric(cls, v):
        return parse_or_zero(v)

    @field_validator("description", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @property
    def amount(self) -> float:
        return self.quantity * self.unit_rate

    def is_blank(self) -> bool:
        return not self.description.strip() and self.unit_rate == 0


class Totals(BaseModel):
    model_config = ConfigDict(frozen=True)

    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0


class Document(BaseModel):
    """
    Invoice / receipt payload, as collected from the form.
    Immutable: every change goes through model_copy(update=...).
    Serialised with camelCase aliases (by_alias=True), the same shape the
    HTTP API and the history file use.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    invoice_number: str = Field(default="", alias="invoiceNumber")
    receipt_number: Optional[str] = Field(default=None, alias="receiptNumber")
    kind: DocumentKind = Field(default="invoice", alias="type")
    status: DocumentStatus = Field(default="pending", alias="invoiceStatus")

    issue_date: date = Field(default_factory=date.today, alias="issueDate")
    due_date: date = Field(default=None, alias="dueDate")  # type: ignore[assignment]
    payment_date: Optional[date] = Field(default=None, alias="paymentDate")

    client_name: str = Field(default="", alias="clientName")
    client_company: str = Field(default="", alias="clientCompany")
    client_email: str = Field(default="", alias="clientEmail")
    client_phone: str = Field(default="", alias="clientPhone")
    client_address: str = Field(default="", alias="clientAddress")

    # free text: codes without a known rate or symbol still render
    currency: str = "USD"
    tax_rate: float = Field(default=0.0, alias="taxRate")
    discount: float = 0.0
    notes: str = Field(default="", alias="invoiceNotes")
    payment_method: str = Field(default=DEFAULT_PAYMENT_METHOD, alias="paymentMethod")

    services: List[ServiceLine] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if not isinstance(data, dict):
            return data
        d = dict(data)
        # form inputs arrive as "" when untouched
        for key in ("issueDate", "issue_date", "dueDate", "due_date",
                    "paymentDate", "payment_date", "receiptNumber", "receipt_number"):
            if key in d and d[key] in ("", None):
                d.pop(key)
        for key in ("type", "kind", "invoiceStatus", "status", "currency",
                    "paymentMethod", "payment_method"):
            if key in d and d[key] in ("", None):
                d.pop(key)
        if "dueDate" not in d and "due_date" not in d:
            issue = d.get("issueDate", d.get("issue_date"))
            if isinstance(issue, str):
                issue = date.fromisoformat(issue[:10])
            d["due_date"] = (issue or date.today()) + timedelta(days=DUE_DAYS)
        return d

    @field_validator("tax_rate", "discount", mode="before")
    @classmethod
    def _numeric(cls, v):
        return parse_or_zero(v)

    @field_validator("invoice_number", "client_name", "client_company", "client_email",
                     "client_phone", "client_address", "notes", mode="before")
    @classmethod
    def _text(cls, v):
        return "" if v is None else str(v)

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, v):
        v = "" if v is None else str(v).strip()
        return v or "USD"

    @field_validator("issue_date", "due_date", "payment_date", mode="before")
    @classmethod
    def _iso_date(cls, v):
        # accepts "2026-10-18" as well as full ISO timestamps
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v

    # helpers
    @property
    def display_client(self) -> str:
        return self.client_name or "Client Name"

    @property
    def history_client(self) -> str:
        return self.client_name or "Unnamed Client"

    def number_sequence(self) -> Optional[int]:
        """INV-0007 -> 7 ; None when the number isn't in INV-#### form."""
        _, _, tail = self.invoice_number.partition("-")
        return int(tail) if tail.isdigit() else None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
