from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from invoicer.models.common import utcnow
from invoicer.models.document import Document, DocumentKind
from invoicer.models.history import HistoryEntry
from invoicer.services.totals_service import display_total

logger = logging.getLogger(__name__)


class HistoryEntryNotFound(LookupError):
    pass


class ListRepository(Protocol):
    def list_all(self) -> List[Dict[str, Any]]: ...
    def replace_all(self, rows: Any) -> None: ...
    def replace_at(self, index: int, record: Any) -> None: ...


# ---------- transitions (pure) ----------

def _entry_for(doc: Document, kind: DocumentKind, saved_at: datetime) -> HistoryEntry:
    return HistoryEntry(
        number=doc.invoice_number,
        kind=kind,
        date=saved_at,
        client=doc.history_client,
        amount=display_total(doc),
        payload=doc,
    )


def _index_of(entries: List[HistoryEntry], number: str, kind: DocumentKind) -> int:
    for idx, e in enumerate(entries):
        if e.number == number and e.kind == kind:
            return idx
    return -1


def apply_save(entries: List[HistoryEntry], doc: Document, saved_at: datetime) -> Tuple[List[HistoryEntry], HistoryEntry, bool]:
    """
    Returns (new entries, stored entry, created).

    invoice: merge into the invoice entry with the same number, in place;
             otherwise insert at the front (created=True).
    receipt: always a new receipt entry at the front; the sibling invoice
             entry, if any, takes the receipt's fields and becomes paid.
    """
    out = list(entries)
    if doc.kind == "invoice":
        idx = _index_of(out, doc.invoice_number, "invoice")
        entry = _entry_for(doc, "invoice", saved_at)
        if idx >= 0:
            # last write wins, position kept
            out[idx] = out[idx].model_copy(update={
                "date": entry.date, "client": entry.client, "amount": entry.amount, "payload": doc,
            })
            return out, out[idx], False
        out.insert(0, entry)
        return out, entry, True

    receipt = _entry_for(doc.model_copy(update={"status": "paid"}), "receipt", saved_at)
    idx = _index_of(out, doc.invoice_number, "invoice")
    if idx >= 0:
        out[idx] = out[idx].model_copy(update={"payload": doc.model_copy(update={"kind": "invoice", "status": "paid"})})
    out.insert(0, receipt)
    return out, receipt, True


# ---------- store ----------

class HistoryStore:
    """Saved invoices and receipts, most recent first (index 0)."""

    def __init__(self, repo: ListRepository, clock: Callable[[], datetime] = utcnow):
        self.repo = repo
        self.clock = clock

    def list_all(self) -> List[HistoryEntry]:
        out: List[HistoryEntry] = []
        for d in self.repo.list_all():
            try:
                out.append(HistoryEntry.model_validate(d))
            except ValidationError as e:
                # skip rows an older version may have left behind
                logger.warning("Skipping unreadable history entry %r: %s", d.get("number"), e)
                continue
        return out

    def list_invoices(self) -> List[HistoryEntry]:
        return [e for e in self.list_all() if e.kind == "invoice"]

    def list_receipts(self) -> List[HistoryEntry]:
        return [e for e in self.list_all() if e.kind == "receipt"]

    def most_recent(self) -> Optional[HistoryEntry]:
        entries = self.list_all()
        return entries[0] if entries else None

    def find_by_number(self, number: str, kind: Optional[DocumentKind] = None) -> Optional[HistoryEntry]:
        for e in self.list_all():
            if e.number == number and (kind is None or e.kind == kind):
                return e
        return None

    def get(self, number: str, kind: Optional[DocumentKind] = None) -> HistoryEntry:
        entry = self.find_by_number(number, kind)
        if entry is None:
            label = kind or "entry"
            raise HistoryEntryNotFound(f"No saved {label} found for {number}")
        return entry

    def upsert(self, doc: Document) -> Tuple[HistoryEntry, bool]:
        """Save per the invoice/receipt rules of apply_save; returns (entry, created)."""
        entries, stored, created = apply_save(self.list_all(), doc, self.clock())
        self.repo.replace_all(e.to_record() for e in entries)
        logger.info("History %s %s %s", "added" if created else "updated", stored.kind, stored.number)
        return stored, created

    def set_receipt_number(self, number: str, receipt_number: str) -> HistoryEntry:
        """Attach a receipt number to the most recent receipt entry lacking one for this invoice."""
        entries = self.list_all()
        for idx, e in enumerate(entries):
            if e.number == number and e.kind == "receipt":
                if e.payload.receipt_number:
                    return e
                updated = e.model_copy(update={"payload": e.payload.model_copy(update={"receipt_number": receipt_number})})
                self.repo.replace_at(idx, updated.to_record())
                return updated
        raise HistoryEntryNotFound(f"No saved receipt found for {number}")
