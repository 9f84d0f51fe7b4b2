"""
Server-side PDF: draws the document with reportlab on A4 pages.

Pagination is purely geometric: a y cursor walks down the page and a new page
starts whenever the next row would cross the bottom margin. Rows are never
split; the line-item header is repeated on continuation pages.
"""
from __future__ import annotations
from datetime import date
from io import BytesIO
from typing import Any, Dict, Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from invoicer.models.document import Document, DocumentKind
from invoicer.models.profile import BusinessProfile
from invoicer.services.render_service import build_context

W, H = A4
MARGIN = 50
CONTENT_W = W - 2 * MARGIN
LINE_H = 14

NAVY = HexColor("#1a365d")
GREEN = HexColor("#276749")
BLACK = HexColor("#000000")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

# table columns: x of left edge (description) / right edges (numbers)
COL_DESC = MARGIN
COL_QTY_R = 350
COL_RATE_R = 440
COL_AMT_R = W - MARGIN
DESC_W = COL_QTY_R - 60 - COL_DESC


class PdfPageWriter:
    """Thin cursor on top of a reportlab canvas."""

    def __init__(self, title: str = ""):
        self.buffer = BytesIO()
        self.c = canvas.Canvas(self.buffer, pagesize=A4)
        if title:
            self.c.setTitle(title)
        self.page_count = 1
        self.y = H - MARGIN
        self.on_new_page = None  # callback, e.g. repeat a table header

    def new_page(self) -> None:
        self.c.showPage()
        self.page_count += 1
        self.y = H - MARGIN
        if self.on_new_page:
            self.on_new_page()

    def ensure(self, height: float) -> None:
        if self.y - height < MARGIN:
            self.new_page()

    def text(self, s: str, *, x: float = MARGIN, font: str = FONT, size: int = 10, color=BLACK, align: str = "left") -> None:
        self.ensure(LINE_H)
        self.c.setFont(font, size)
        self.c.setFillColor(color)
        if align == "right":
            self.c.drawRightString(x, self.y - size, s)
        else:
            self.c.drawString(x, self.y - size, s)
        self.y -= max(LINE_H, size + 4)

    def wrapped(self, s: str, *, font: str = FONT, size: int = 10, width: float = CONTENT_W) -> None:
        for para in s.splitlines() or [""]:
            for line in simpleSplit(para, font, size, width) or [""]:
                self.text(line, font=font, size=size)

    def gap(self, h: float = LINE_H / 2) -> None:
        self.y -= h

    def rule(self) -> None:
        self.ensure(6)
        self.c.setStrokeColor(HexColor("#cccccc"))
        self.c.setLineWidth(0.5)
        self.c.line(MARGIN, self.y, W - MARGIN, self.y)
        self.y -= 6

    def finish(self) -> bytes:
        self.c.save()
        return self.buffer.getvalue()


def _table_header(w: PdfPageWriter) -> None:
    w.ensure(LINE_H + 6)
    y = w.y - 10
    w.c.setFont(FONT_BOLD, 10)
    w.c.setFillColor(BLACK)
    w.c.drawString(COL_DESC, y, "Description")
    w.c.drawRightString(COL_QTY_R, y, "Qty")
    w.c.drawRightString(COL_RATE_R, y, "Rate")
    w.c.drawRightString(COL_AMT_R, y, "Amount")
    w.y -= LINE_H
    w.rule()


def _table_row(w: PdfPageWriter, row: Dict[str, str]) -> None:
    desc_lines = simpleSplit(row["description"], FONT, 10, DESC_W) or ["-"]
    w.ensure(LINE_H * len(desc_lines))
    y = w.y - 10
    w.c.setFont(FONT, 10)
    w.c.setFillColor(BLACK)
    w.c.drawRightString(COL_QTY_R, y, row["qty"])
    w.c.drawRightString(COL_RATE_R, y, row["rate"])
    w.c.drawRightString(COL_AMT_R, y, row["amount"])
    for i, line in enumerate(desc_lines):
        w.c.drawString(COL_DESC, y - i * LINE_H, line)
    w.y -= LINE_H * len(desc_lines)


def draw_document(w: PdfPageWriter, ctx: Dict[str, Any]) -> None:
    # header
    w.text(ctx["title"], size=20, color=NAVY, font=FONT_BOLD)
    w.gap()
    w.text(f"Invoice #: {ctx['invoice_number']}")
    if ctx["receipt_number"]:
        w.text(f"Receipt #: {ctx['receipt_number']}")
    w.text(f"Issue Date: {ctx['issue_date']}")
    w.text(f"Due Date: {ctx['due_date']}")
    w.gap(LINE_H)

    # parties
    company = ctx["company"]
    w.text("From:", font=FONT_BOLD)
    w.text(company.name)
    for line in company.address_lines:
        w.text(line)
    w.text(f"Phone: {company.phone}")
    w.text(f"Email: {company.email}")
    w.gap()
    w.text("Bill To:", font=FONT_BOLD)
    w.text(ctx["client_name"])
    for line in ctx["client_lines"]:
        w.text(line)
    w.gap(LINE_H)

    # line items
    _table_header(w)
    w.on_new_page = lambda: _table_header(w)
    if not ctx["lines"]:
        w.text("No services added", color=HexColor("#888888"))
    for row in ctx["lines"]:
        _table_row(w, row)
    w.on_new_page = None
    w.rule()

    # totals
    w.text(f"Subtotal: {ctx['subtotal']}", x=COL_AMT_R, align="right")
    if ctx["tax_label"]:
        w.text(f"{ctx['tax_label']}: {ctx['tax']}", x=COL_AMT_R, align="right")
    if ctx["discount"]:
        w.text(f"Discount: {ctx['discount']}", x=COL_AMT_R, align="right")
    w.gap()
    w.text(f"Total Due: {ctx['total']}", x=COL_AMT_R, align="right", font=FONT_BOLD, size=12)

    # payment details
    w.gap(LINE_H)
    w.text("Bank / Payment Details", font=FONT_BOLD)
    for line in ctx["bank_lines"]:
        w.text(line)

    if ctx["notes"]:
        w.gap(LINE_H)
        w.text("Notes:", font=FONT_BOLD)
        w.wrapped(ctx["notes"])

    if ctx["payment_statement"]:
        w.gap(LINE_H)
        w.text(ctx["payment_statement"], color=GREEN, font=FONT_BOLD)


def render_pdf(
    doc: Document,
    kind: Optional[DocumentKind] = None,
    profile: Optional[BusinessProfile] = None,
    today: Optional[date] = None,
) -> bytes:
    ctx = build_context(doc, kind, profile, today)
    w = PdfPageWriter(title=f"{ctx['title'].title()} {ctx['invoice_number']}")
    draw_document(w, ctx)
    return w.finish()


def download_filename(doc: Document, kind: Optional[DocumentKind] = None) -> str:
    """invoice_INV-0007.pdf / receipt_RCT-20261018-0001.pdf"""
    kind = kind or doc.kind
    if kind == "receipt":
        return f"receipt_{doc.receipt_number or doc.invoice_number or 'receipt'}.pdf"
    return f"invoice_{doc.invoice_number or 'invoice'}.pdf"
