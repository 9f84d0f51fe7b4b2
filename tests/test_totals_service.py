import pytest

from invoicer.models.common import parse_or_zero
from invoicer.models.document import Document, ServiceLine
from invoicer.services.totals_service import compute_totals, display_total, document_totals


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12", 12.0),
        ("12.5", 12.5),
        (" 3 ", 3.0),
        ("12abc", 12.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
        (float("inf"), 0.0),
        (7, 7.0),
        (".5", 0.5),
        ("-4", -4.0),
    ],
)
def test_parse_or_zero(raw, expected):
    assert parse_or_zero(raw) == expected


def test_reference_scenario():
    lines = [
        ServiceLine(description="Design", quantity=2, unit_rate=50),
        ServiceLine(description="Hosting", quantity=1, unit_rate=20),
    ]
    totals = compute_totals(lines, 16, 10)
    assert totals.subtotal == pytest.approx(120.0)
    assert totals.tax_amount == pytest.approx(19.2)
    assert totals.total == pytest.approx(129.2)

    doc = Document(services=lines, tax_rate=16, discount=10, currency="USD")
    assert display_total(doc) == "$129.20"


def test_subtotal_treats_bad_input_as_zero():
    lines = [
        {"desc": "a", "qty": "3", "rate": "abc"},
        {"desc": "b", "qty": "", "rate": "40"},
        {"desc": "c", "qty": "2", "rate": "7.5"},
    ]
    totals = compute_totals(lines, "", None)
    assert totals.subtotal == pytest.approx(15.0)
    assert totals.total == pytest.approx(15.0)


def test_negative_total_is_not_clamped():
    totals = compute_totals([ServiceLine(quantity=1, unit_rate=10)], 10, 50)
    assert totals.total == pytest.approx(10 + 1 - 50)
    assert totals.total < 0


def test_document_lines_parse_form_strings():
    doc = Document.model_validate({
        "taxRate": "16",
        "discount": "oops",
        "services": [{"desc": "Design", "qty": "2", "rate": "50"}],
    })
    assert doc.discount == 0.0
    assert doc.services[0].amount == 100.0
    assert document_totals(doc).total == pytest.approx(116.0)


def test_row_without_qty_counts_as_zero():
    rows = [{"desc": "Hosting", "rate": "50"}, {"desc": "Design", "qty": "2", "rate": "10"}]
    doc = Document.model_validate({"services": rows})
    assert doc.services[0].quantity == 0
    assert compute_totals(rows, 0, 0).total == pytest.approx(20.0)
    assert document_totals(doc).total == pytest.approx(20.0)
