from __future__ import annotations
import logging
from datetime import date
from typing import Callable, List, Literal, Optional, Protocol, Tuple

from pydantic import BaseModel

from invoicer.models.document import Document, DocumentKind, DocumentStatus, ServiceLine, Totals
from invoicer.services.api_client import TransportError
from invoicer.services.history_service import HistoryEntryNotFound, HistoryStore
from invoicer.services.numbering_service import InvoiceCounter, local_receipt_number
from invoicer.services.pdf_service import download_filename
from invoicer.services.render_service import LocalRenderer
from invoicer.services.totals_service import display_total, document_totals

logger = logging.getLogger(__name__)

NoticeLevel = Literal["success", "info", "error"]
PdfFile = Tuple[bytes, str]  # (content, download file name)

_CLIENT_FIELDS = ("client_name", "client_company", "client_email", "client_phone", "client_address", "notes")


class Notice(BaseModel):
    level: NoticeLevel = "info"
    message: str


class DocumentApi(Protocol):
    def render_pdf(self, doc: Document, kind: Optional[DocumentKind] = None) -> bytes: ...
    def next_receipt_number(self) -> str: ...


class InvoiceWorkflow:
    """
    Operator actions on a draft: save, mark paid / pending, generate,
    load, duplicate, download. Drafts are immutable Document values; every
    action takes the current draft and returns the resulting one.
    """

    def __init__(
        self,
        history: HistoryStore,
        counter: InvoiceCounter,
        api: Optional[DocumentApi] = None,
        local: Optional[LocalRenderer] = None,
        today: Callable[[], date] = date.today,
    ):
        self.history = history
        self.counter = counter
        self.api = api
        self.local = local or LocalRenderer()
        self.today = today
        self.notices: List[Notice] = []
        self.last_loaded: Optional[Document] = None
        self.duplicate_source: Optional[str] = None

    # ----------- notices -----------
    def notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))
        log = logger.warning if level == "error" else logger.info
        log(message)

    # ----------- drafts -----------
    def new_draft(self) -> Document:
        """Empty form with the next number pre-filled; the counter is not advanced."""
        self.last_loaded = None
        self.duplicate_source = None
        return Document(
            invoice_number=self.counter.peek_next_number(),
            issue_date=self.today(),
            services=[ServiceLine(quantity=1)],
        )

    def has_unsaved_changes(self, draft: Document) -> bool:
        ref = self.last_loaded
        if ref is None:
            for f in _CLIENT_FIELDS:
                if getattr(draft, f).strip():
                    return True
            if draft.tax_rate or draft.discount:
                return True
            return any(not ln.is_blank() for ln in draft.services)

        for f in _CLIENT_FIELDS + ("payment_method",):
            if getattr(draft, f).strip() != getattr(ref, f).strip():
                return True
        if (draft.tax_rate, draft.discount, draft.currency) != (ref.tax_rate, ref.discount, ref.currency):
            return True
        if len(draft.services) != len(ref.services):
            return True
        for a, b in zip(draft.services, ref.services):
            if (a.description.strip(), a.quantity, a.unit_rate) != (b.description.strip(), b.quantity, b.unit_rate):
                return True
        return False

    def totals(self, draft: Document) -> Totals:
        return document_totals(draft)

    def total_due(self, draft: Document) -> str:
        return display_total(draft)

    def preview(self, draft: Document, kind: Optional[DocumentKind] = None) -> str:
        return self.local.preview(draft, kind)

    # ----------- identity -----------
    def _with_number(self, draft: Document) -> Document:
        if draft.invoice_number.strip():
            return draft
        return draft.model_copy(update={"invoice_number": self.counter.peek_next_number()})

    def ensure_receipt_number(self, doc: Document) -> Document:
        """Keep an assigned receipt number; else ask the server, else make one up locally."""
        if doc.receipt_number:
            return doc
        number = None
        if self.api is not None:
            try:
                number = self.api.next_receipt_number()
            except TransportError as e:
                logger.warning("Receipt number request failed: %s", e)
        if number is None:
            number = local_receipt_number(self.today())
            self.notify("error", f"Could not assign server receipt number; using local number {number}")
        return doc.model_copy(update={"receipt_number": number})

    # ----------- saving -----------
    def save_invoice(self, draft: Document, status: Optional[DocumentStatus] = None) -> Document:
        update = {"kind": "invoice"}
        if status:
            update["status"] = status
        doc = self._with_number(draft).model_copy(update=update)
        entry, created = self.history.upsert(doc)
        if created:
            self.counter.commit()
        self.last_loaded = entry.payload
        self.duplicate_source = None
        return entry.payload

    def mark_pending(self, draft: Document) -> Document:
        doc = self.save_invoice(draft, status="pending")
        self.notify("success", f"Invoice {doc.invoice_number} marked as pending")
        return doc

    def _record_receipt(self, draft: Document, paid_on: Optional[date] = None) -> Document:
        doc = self._with_number(draft).model_copy(update={
            "kind": "receipt",
            "status": "paid",
            "payment_date": paid_on or self.today(),
        })
        doc = self.ensure_receipt_number(doc)
        entry, _ = self.history.upsert(doc)
        self.last_loaded = entry.payload
        return entry.payload

    def mark_paid(self, draft: Document, paid_on: Optional[date] = None) -> Tuple[Document, str]:
        """Records a receipt (invoice entry flips to paid); returns it with its preview HTML."""
        receipt = self._record_receipt(draft, paid_on)
        self.notify("success", f"Invoice {receipt.invoice_number} marked as paid ({receipt.receipt_number})")
        return receipt, self.local.preview(receipt, "receipt")

    # ----------- rendering -----------
    def _render(self, doc: Document, kind: DocumentKind) -> bytes:
        if self.api is not None:
            try:
                return self.api.render_pdf(doc, kind)
            except TransportError as e:
                logger.warning("Server render failed, falling back to local PDF: %s", e)
                self.notify("error", "Server failed, falling back to local PDF")
        return self.local.pdf(doc, kind)

    def generate_invoice_pdf(self, draft: Document) -> PdfFile:
        doc = self._with_number(draft).model_copy(update={"kind": "invoice"})
        content = self._render(doc, "invoice")
        saved = self.save_invoice(doc)
        return content, download_filename(saved, "invoice")

    def generate_receipt_pdf(self, draft: Document, paid_on: Optional[date] = None) -> PdfFile:
        receipt = self._record_receipt(draft, paid_on)
        return self._render(receipt, "receipt"), download_filename(receipt, "receipt")

    # ----------- history actions -----------
    def load(self, number: str, kind: Optional[DocumentKind] = None) -> Optional[Document]:
        try:
            entry = self.history.get(number, kind)
        except HistoryEntryNotFound as e:
            self.notify("error", str(e))
            return None
        self.last_loaded = entry.payload
        self.duplicate_source = None
        return entry.payload

    def duplicate(self, number: str) -> Optional[Document]:
        """Copy of a saved invoice as a new draft carrying the next number."""
        try:
            entry = self.history.get(number, "invoice")
        except HistoryEntryNotFound:
            self.notify("error", "No saved invoice found to duplicate")
            return None
        draft = entry.payload.model_copy(update={
            "invoice_number": self.counter.peek_next_number(),
            "receipt_number": None,
            "kind": "invoice",
            "status": "pending",
            "payment_date": None,
        })
        self.last_loaded = entry.payload
        self.duplicate_source = number
        self.notify("success", "Invoice duplicated into a new draft")
        return draft

    def download(self, number: str, kind: DocumentKind = "invoice") -> Optional[PdfFile]:
        if kind == "receipt":
            return self.download_receipt(number)
        try:
            entry = self.history.get(number, kind)
        except HistoryEntryNotFound as e:
            self.notify("error", str(e))
            return None
        return self._render(entry.payload, kind), download_filename(entry.payload, kind)

    def download_most_recent(self) -> Optional[PdfFile]:
        entry = self.history.most_recent()
        if entry is None:
            self.notify("error", "No history to download from")
            return None
        if entry.kind == "receipt":
            return self.download_receipt(entry.number)
        return self._render(entry.payload, entry.kind), download_filename(entry.payload, entry.kind)

    def download_receipt(self, number: str) -> Optional[PdfFile]:
        try:
            entry = self.history.get(number, "receipt")
        except HistoryEntryNotFound as e:
            self.notify("error", str(e))
            return None
        doc = entry.payload
        if not doc.receipt_number:
            # older receipts: assign now and keep it on the entry
            doc = self.ensure_receipt_number(doc)
            entry = self.history.set_receipt_number(number, doc.receipt_number)
            doc = entry.payload
        return self._render(doc, "receipt"), download_filename(doc, "receipt")
