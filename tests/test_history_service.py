import json
from datetime import date, datetime, timezone

import pytest

from invoicer.models.document import Document, ServiceLine
from invoicer.services.history_service import HistoryEntryNotFound, HistoryStore
from invoicer.storage.json_repo import InMemoryListRepository, JsonListRepository


def _clock():
    return datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def _invoice(number="INV-0007", **kw):
    data = dict(
        invoice_number=number,
        issue_date=date(2026, 10, 18),
        client_name="Acme",
        services=[ServiceLine(description="Design", quantity=2, unit_rate=50)],
    )
    data.update(kw)
    return Document(**data)


@pytest.fixture
def store():
    return HistoryStore(InMemoryListRepository(), clock=_clock)


def test_new_invoice_goes_to_front(store):
    _, created = store.upsert(_invoice("INV-0001"))
    entry, created2 = store.upsert(_invoice("INV-0002"))
    assert created and created2
    assert [e.number for e in store.list_all()] == ["INV-0002", "INV-0001"]
    assert entry.amount == "$100.00"
    assert entry.client == "Acme"


def test_resaving_invoice_merges_in_place(store):
    store.upsert(_invoice("INV-0001"))
    store.upsert(_invoice("INV-0002"))
    entry, created = store.upsert(_invoice("INV-0001", client_name="Acme Ltd", discount=10))

    assert not created
    entries = store.list_all()
    assert [e.number for e in entries] == ["INV-0002", "INV-0001"]
    assert entries[1].client == "Acme Ltd"
    assert entries[1].amount == "$90.00"
    assert entry.payload.discount == 10


def test_receipt_creates_entry_and_flips_invoice_to_paid(store):
    store.upsert(_invoice())
    receipt = _invoice(kind="receipt", receipt_number="RCT-20261018-0001")
    entry, created = store.upsert(receipt)

    assert created
    assert entry.kind == "receipt"
    assert entry.payload.status == "paid"
    entries = store.list_all()
    assert [(e.number, e.kind) for e in entries] == [("INV-0007", "receipt"), ("INV-0007", "invoice")]
    invoice = store.find_by_number("INV-0007", "invoice")
    assert invoice.payload.status == "paid"
    assert invoice.payload.kind == "invoice"
    assert invoice.payload.invoice_number == "INV-0007"


def test_marking_paid_again_adds_another_receipt(store):
    store.upsert(_invoice())
    store.upsert(_invoice(kind="receipt", receipt_number="RCT-20261018-0001"))
    store.upsert(_invoice(kind="receipt", receipt_number="RCT-20261018-0001"))
    assert len(store.list_receipts()) == 2
    assert len(store.list_invoices()) == 1


def test_receipt_without_invoice_is_inserted(store):
    store.upsert(_invoice(kind="receipt", receipt_number="RCT-20261018-0003"))
    assert store.list_invoices() == []
    assert store.list_receipts()[0].receipt_number == "RCT-20261018-0003"


def test_mark_pending_keeps_receipts(store):
    store.upsert(_invoice())
    store.upsert(_invoice(kind="receipt", receipt_number="RCT-20261018-0001"))
    store.upsert(_invoice(status="pending"))
    assert store.find_by_number("INV-0007", "invoice").status == "pending"
    assert len(store.list_receipts()) == 1


def test_most_recent_is_index_zero_regardless_of_kind(store):
    assert store.most_recent() is None
    store.upsert(_invoice("INV-0001"))
    store.upsert(_invoice("INV-0001", kind="receipt", receipt_number="RCT-20261018-0001"))
    assert store.most_recent().kind == "receipt"


def test_get_missing_raises(store):
    with pytest.raises(HistoryEntryNotFound):
        store.get("INV-9999")
    assert store.find_by_number("INV-9999") is None


def test_set_receipt_number_backfills_once(store):
    store.upsert(_invoice(kind="receipt"))
    updated = store.set_receipt_number("INV-0007", "RCT-20261018-0009")
    assert updated.receipt_number == "RCT-20261018-0009"
    again = store.set_receipt_number("INV-0007", "RCT-20261018-0010")
    assert again.receipt_number == "RCT-20261018-0009"


def test_json_file_layout(tmp_path):
    path = tmp_path / "invoice_history.json"
    store = HistoryStore(JsonListRepository(path), clock=_clock)
    store.upsert(_invoice())

    rows = json.loads(path.read_text(encoding="utf-8"))
    assert len(rows) == 1
    assert set(rows[0]) == {"number", "type", "date", "client", "amount", "payload"}
    assert rows[0]["payload"]["invoiceNumber"] == "INV-0007"
    assert rows[0]["payload"]["services"][0]["desc"] == "Design"


def test_corrupt_history_reads_empty_and_is_kept_aside(tmp_path):
    path = tmp_path / "invoice_history.json"
    path.write_text("[{broken")
    store = HistoryStore(JsonListRepository(path), clock=_clock)
    assert store.list_all() == []
    assert (tmp_path / "invoice_history.corrupt.json").read_text() == "[{broken"
