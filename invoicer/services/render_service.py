from __future__ import annotations
import logging
import os
import shutil
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from invoicer.config import TEMPLATES_DIR
from invoicer.models.common import long_date, plain_number
from invoicer.models.document import Document, DocumentKind
from invoicer.models.profile import BusinessProfile
from invoicer.services.currency_service import format_money
from invoicer.services.totals_service import document_totals

logger = logging.getLogger(__name__)


# ---------- shared view model ----------

def build_context(
    doc: Document,
    kind: Optional[DocumentKind] = None,
    profile: Optional[BusinessProfile] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Everything a renderer prints, already formatted. The HTML preview and the
    server PDF both read this, so they show the same totals.
    """
    kind = kind or doc.kind
    profile = profile or BusinessProfile()
    totals = document_totals(doc)
    cur = doc.currency

    client_lines = []
    if doc.client_company:
        client_lines.append(doc.client_company)
    if doc.client_address:
        client_lines.append(doc.client_address)
    if doc.client_phone:
        client_lines.append(f"Phone: {doc.client_phone}")
    if doc.client_email:
        client_lines.append(f"Email: {doc.client_email}")

    ctx: Dict[str, Any] = {
        "kind": kind,
        "title": "RECEIPT" if kind == "receipt" else "INVOICE",
        "invoice_number": doc.invoice_number,
        "receipt_number": doc.receipt_number if kind == "receipt" else None,
        "issue_date": long_date(doc.issue_date),
        "due_date": long_date(doc.due_date),
        "company": profile.company,
        "bank_lines": profile.bank.lines(),
        "client_name": doc.display_client,
        "client_lines": client_lines,
        "lines": [
            {
                "description": ln.description or "-",
                "qty": plain_number(ln.quantity),
                "rate": format_money(ln.unit_rate, cur),
                "amount": format_money(ln.amount, cur),
            }
            for ln in doc.services
        ],
        "subtotal": format_money(totals.subtotal, cur),
        "tax_label": f"Tax ({plain_number(doc.tax_rate)}%)" if doc.tax_rate > 0 else None,
        "tax": format_money(totals.tax_amount, cur),
        "discount": f"-{format_money(doc.discount, cur)}" if doc.discount > 0 else None,
        "total": format_money(totals.total, cur),
        "notes": doc.notes or None,
        "payment_statement": None,
    }
    if kind == "receipt":
        paid_on = doc.payment_date or today or date.today()
        ctx["payment_statement"] = f"Payment received on {long_date(paid_on)} via {doc.payment_method}"
    return ctx


# ---------- HTML preview ----------

_env: Optional[Environment] = None


def _environment() -> Environment:
    global _env
    if _env is None:
        _env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
    return _env


def render_preview_html(
    doc: Document,
    kind: Optional[DocumentKind] = None,
    profile: Optional[BusinessProfile] = None,
    today: Optional[date] = None,
) -> str:
    tpl = _environment().get_template("document.html")
    return tpl.render(**build_context(doc, kind, profile, today))


# ---------- local PDF (HTML -> PDF) ----------

def _clean_path(p: str) -> str:
    """'C\\:\\Program Files\\...' -> 'C:\\Program Files\\...', normalised."""
    if not p:
        return ""
    p = p.strip().strip('"').strip("'")
    p = p.replace("\\:", ":")
    return os.path.normpath(p)


def find_wkhtmltopdf(configured: Optional[str] = None) -> Optional[str]:
    """
    Locate wkhtmltopdf:
    - explicit setting (INVOICER_WKHTMLTOPDF_PATH or data/settings.json)
    - WKHTMLTOPDF / WKHTMLTOPDF_CMD env vars
    - usual Windows install paths
    - PATH
    """
    candidates = [configured] + [os.environ.get(k) for k in ("WKHTMLTOPDF", "WKHTMLTOPDF_CMD")]
    for val in candidates:
        if val:
            path = _clean_path(val)
            if Path(path).is_file():
                return path

    for c in (
        r"C:\Program Files\wkhtmltopdf\bin\wkhtmltopdf.exe",
        r"C:\Program Files (x86)\wkhtmltopdf\bin\wkhtmltopdf.exe",
    ):
        if Path(c).is_file():
            return c

    found = shutil.which("wkhtmltopdf")
    return _clean_path(found) if found else None


def _render_pdf_with_weasyprint(html: str) -> bytes:
    try:
        from weasyprint import HTML
    except (ImportError, OSError) as e:
        raise RuntimeError(
            "wkhtmltopdf not found and WeasyPrint is not usable. "
            "Install WeasyPrint or configure wkhtmltopdf.\n"
            f"Details: {e}"
        ) from e
    return HTML(string=html, base_url=str(TEMPLATES_DIR)).write_pdf()


def html_to_pdf(html: str, wkhtmltopdf: Optional[str] = None) -> bytes:
    """wkhtmltopdf (pdfkit) first, WeasyPrint otherwise."""
    exe = find_wkhtmltopdf(wkhtmltopdf)
    if exe:
        import pdfkit

        try:
            config = pdfkit.configuration(wkhtmltopdf=exe)
            options = {"quiet": "", "encoding": "UTF-8", "page-size": "A4"}
            return pdfkit.from_string(html, False, options=options, configuration=config)
        except OSError as e:
            logger.warning("wkhtmltopdf failed (%s), falling back to WeasyPrint", e)

    return _render_pdf_with_weasyprint(html)


class LocalRenderer:
    """Client-side rendering: preview HTML, then HTML -> PDF."""

    def __init__(self, profile: Optional[BusinessProfile] = None, wkhtmltopdf: Optional[str] = None):
        self.profile = profile or BusinessProfile()
        self.wkhtmltopdf = wkhtmltopdf

    def preview(self, doc: Document, kind: Optional[DocumentKind] = None) -> str:
        return render_preview_html(doc, kind, self.profile)

    def pdf(self, doc: Document, kind: Optional[DocumentKind] = None) -> bytes:
        return html_to_pdf(self.preview(doc, kind), self.wkhtmltopdf)
