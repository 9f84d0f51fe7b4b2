from __future__ import annotations
from typing import Any, Iterable

from invoicer.models.common import parse_or_zero
from invoicer.models.document import Document, ServiceLine, Totals
from invoicer.services.currency_service import format_money


def line_amount(line: ServiceLine | dict) -> float:
    if isinstance(line, ServiceLine):
        return line.amount
    qty = parse_or_zero(line.get("qty", line.get("quantity")))
    rate = parse_or_zero(line.get("rate", line.get("unit_rate")))
    return qty * rate


def compute_totals(lines: Iterable[ServiceLine | dict], tax_rate: Any, discount: Any) -> Totals:
    """
    subtotal = sum(qty * rate), tax on the subtotal, then the discount.
    No rounding here; the total may go negative when the discount is larger.
    """
    subtotal = 0.0
    for ln in lines:
        subtotal += line_amount(ln)
    tax_amount = subtotal * (parse_or_zero(tax_rate) / 100)
    total = subtotal + tax_amount - parse_or_zero(discount)
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=total)


def document_totals(doc: Document) -> Totals:
    return compute_totals(doc.services, doc.tax_rate, doc.discount)


def display_total(doc: Document) -> str:
    """Total Due as shown in the form, e.g. '$129.20'."""
    return format_money(document_totals(doc).total, doc.currency)
