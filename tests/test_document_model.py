from datetime import date

import pytest
from pydantic import ValidationError

from invoicer.models.document import Document, ServiceLine


def test_due_date_defaults_to_issue_plus_14_days():
    doc = Document.model_validate({"issueDate": "2026-10-18"})
    assert doc.issue_date == date(2026, 10, 18)
    assert doc.due_date == date(2026, 11, 1)


def test_blank_form_values_take_defaults():
    doc = Document.model_validate({
        "type": "",
        "currency": "",
        "issueDate": "2026-01-01",
        "dueDate": "",
        "paymentMethod": "",
        "receiptNumber": "",
    })
    assert doc.kind == "invoice"
    assert doc.currency == "USD"
    assert doc.payment_method == "M-Pesa"
    assert doc.receipt_number is None
    assert doc.due_date == date(2026, 1, 15)


def test_payload_uses_wire_names_and_round_trips():
    doc = Document(
        invoice_number="INV-0007",
        issue_date=date(2026, 10, 18),
        client_name="Acme",
        currency="PUNDS",
        services=[ServiceLine(description="Design", quantity=2, unit_rate=50)],
    )
    payload = doc.to_payload()
    assert payload["invoiceNumber"] == "INV-0007"
    assert payload["issueDate"] == "2026-10-18"
    assert payload["dueDate"] == "2026-11-01"
    assert payload["type"] == "invoice"
    assert payload["invoiceStatus"] == "pending"
    assert payload["services"] == [{"desc": "Design", "qty": 2.0, "rate": 50.0}]
    assert Document.model_validate(payload) == doc


def test_document_is_immutable():
    doc = Document()
    with pytest.raises(ValidationError):
        doc.client_name = "changed"
    assert doc.model_copy(update={"client_name": "x"}).client_name == "x"


def test_unknown_currency_is_kept():
    assert Document.model_validate({"currency": "GBP"}).currency == "GBP"
    assert Document.model_validate({"currency": "  "}).currency == "USD"
    assert Document(currency=None).currency == "USD"


def test_display_fallbacks():
    doc = Document()
    assert doc.display_client == "Client Name"
    assert doc.history_client == "Unnamed Client"
