"""Invoicer command line: run the server, work on drafts and saved documents, download PDFs."""
from __future__ import annotations
import json
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from invoicer.config import Settings, configured_wkhtmltopdf, get_settings, load_business_profile
from invoicer.models.document import Document
from invoicer.services.api_client import DocumentApiClient
from invoicer.services.history_service import HistoryStore
from invoicer.services.numbering_service import InvoiceCounter
from invoicer.services.render_service import LocalRenderer
from invoicer.services.workflow_service import InvoiceWorkflow, PdfFile
from invoicer.storage.json_repo import JsonListRepository
from invoicer.storage.value_store import JsonValueStore
from invoicer.utils.logging import setup_logger

app = typer.Typer(
    name="invoicer",
    help="Invoice & receipt generator",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main():
    """Invoice & receipt generator."""
    settings = get_settings()
    setup_logger("invoicer", settings.log_level, settings.log_file)


def build_workflow(settings: Settings, api: Optional[DocumentApiClient] = None) -> InvoiceWorkflow:
    """Client-side wiring: local history + invoice counter, server for PDFs and receipt numbers."""
    return InvoiceWorkflow(
        history=HistoryStore(JsonListRepository(settings.history_file, entity_name="history entry")),
        counter=InvoiceCounter(JsonValueStore(settings.invoice_counter_file)),
        api=api,
        local=LocalRenderer(load_business_profile(settings), configured_wkhtmltopdf(settings)),
    )


# ---------- helpers ----------

@contextmanager
def _session() -> Iterator[InvoiceWorkflow]:
    """Workflow talking to the configured server; notices are printed on the way out."""
    settings = get_settings()
    with DocumentApiClient(settings.api_base_url, settings.request_timeout) as api:
        wf = build_workflow(settings, api)
        try:
            yield wf
        finally:
            _print_notices(wf)


def _print_notices(wf: InvoiceWorkflow) -> None:
    for n in wf.notices:
        style = "red" if n.level == "error" else "green"
        console.print(f"[{style}]{escape(n.message)}[/{style}]")
    wf.notices.clear()


def _read_draft(path: Path) -> Document:
    try:
        return Document.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read document {path}: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _write_draft(doc: Document, out: Optional[Path]) -> None:
    text = json.dumps(doc.to_payload(), indent=2, ensure_ascii=False)
    if out is None:
        typer.echo(text)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    console.print(f"Wrote {out}")


def _write_pdf(result: Optional[PdfFile], out: Path) -> None:
    if result is None:
        raise typer.Exit(code=1)
    content, filename = result
    out.mkdir(parents=True, exist_ok=True)
    path = out / filename
    path.write_bytes(content)
    console.print(f"Saved {path}")


def _saved_invoice(wf: InvoiceWorkflow, number: str) -> Document:
    doc = wf.load(number, "invoice")
    if doc is None:
        raise typer.Exit(code=1)
    return doc


# ---------- commands ----------

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port"),
):
    """Run the document server."""
    from invoicer.api.main import run

    settings = get_settings()
    update = {k: v for k, v in {"host": host, "port": port}.items() if v is not None}
    run(settings.model_copy(update=update))


@app.command()
def new(out: Optional[Path] = typer.Option(None, "--out", help="Write the draft here instead of stdout")):
    """Empty draft carrying the next invoice number, as JSON."""
    wf = build_workflow(get_settings())
    _write_draft(wf.new_draft(), out)


@app.command()
def save(draft: Path = typer.Argument(..., help="Document JSON file")):
    """Save a draft as an invoice (new number on first save, merged afterwards)."""
    with _session() as wf:
        doc = wf.save_invoice(_read_draft(draft))
    console.print(f"Saved {doc.invoice_number} ({wf.total_due(doc)})")


@app.command()
def show(
    number: str = typer.Argument(..., help="Invoice number"),
    receipt: bool = typer.Option(False, "--receipt", help="Show the receipt instead of the invoice"),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the document here instead of stdout"),
):
    """Load a saved document as JSON."""
    with _session() as wf:
        doc = wf.load(number, "receipt" if receipt else "invoice")
    if doc is None:
        raise typer.Exit(code=1)
    _write_draft(doc, out)


@app.command("mark-paid")
def mark_paid(
    number: str = typer.Argument(..., help="Invoice number"),
    paid_on: Optional[datetime] = typer.Option(None, "--paid-on", formats=["%Y-%m-%d"], help="Payment date"),
    method: Optional[str] = typer.Option(None, "--method", help="Payment method"),
):
    """Record a payment: new receipt entry, invoice flipped to paid."""
    with _session() as wf:
        doc = _saved_invoice(wf, number)
        if method:
            doc = doc.model_copy(update={"payment_method": method})
        receipt, _ = wf.mark_paid(doc, paid_on.date() if paid_on else None)
    console.print(f"Receipt {receipt.receipt_number} for {receipt.invoice_number}")


@app.command("mark-pending")
def mark_pending(number: str = typer.Argument(..., help="Invoice number")):
    """Put a saved invoice back to pending (receipts are kept)."""
    with _session() as wf:
        wf.mark_pending(_saved_invoice(wf, number))


@app.command()
def duplicate(
    number: str = typer.Argument(..., help="Invoice number to copy"),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the draft here instead of stdout"),
):
    """Copy a saved invoice into a new draft with the next number."""
    with _session() as wf:
        doc = wf.duplicate(number)
    if doc is None:
        raise typer.Exit(code=1)
    _write_draft(doc, out)


@app.command()
def generate(
    draft: Path = typer.Argument(..., help="Document JSON file"),
    receipt: bool = typer.Option(False, "--receipt", help="Record the payment and render the receipt"),
    paid_on: Optional[datetime] = typer.Option(None, "--paid-on", formats=["%Y-%m-%d"], help="Payment date"),
    out: Path = typer.Option(Path("."), "--out", help="Output directory"),
):
    """Render a draft to PDF and save it to history."""
    doc = _read_draft(draft)
    with _session() as wf:
        if receipt:
            result = wf.generate_receipt_pdf(doc, paid_on.date() if paid_on else None)
        else:
            result = wf.generate_invoice_pdf(doc)
    _write_pdf(result, out)


@app.command()
def history(receipts: bool = typer.Option(False, "--receipts", help="Only receipts")):
    """List saved documents, most recent first."""
    wf = build_workflow(get_settings())
    entries = wf.history.list_receipts() if receipts else wf.history.list_all()
    if not entries:
        console.print("No receipts yet" if receipts else "No invoice history yet")
        return

    table = Table(show_header=True, header_style="bold")
    for col in ("Number", "Type", "Receipt #", "Client", "Amount", "Date", "Status"):
        table.add_column(col)
    for e in entries:
        table.add_row(
            e.number,
            e.kind,
            e.receipt_number or "",
            e.client,
            e.amount,
            e.date.strftime("%Y-%m-%d"),
            e.status.capitalize(),
        )
    console.print(table)


@app.command()
def download(
    number: Optional[str] = typer.Argument(None, help="Invoice number; most recent entry when omitted"),
    receipt: bool = typer.Option(False, "--receipt", help="Download the receipt instead of the invoice"),
    out: Path = typer.Option(Path("."), "--out", help="Output directory"),
):
    """Render a saved document to PDF."""
    with _session() as wf:
        if number is None:
            result = wf.download_most_recent()
        else:
            result = wf.download(number, "receipt" if receipt else "invoice")
    _write_pdf(result, out)


if __name__ == "__main__":
    app()
