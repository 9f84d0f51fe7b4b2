from __future__ import annotations
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from invoicer.models.document import Document
from invoicer.services.pdf_service import download_filename, render_pdf

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


async def _json_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    data = await request.json()
    return data if isinstance(data, dict) else {}


@router.post("/invoice")
async def generate_document(request: Request) -> Response:
    try:
        data = await _json_body(request)
        data["type"] = data.get("type") or "invoice"
        doc = Document.model_validate(data)
        # reportlab drawing is blocking
        content = await run_in_threadpool(render_pdf, doc, doc.kind, profile=request.app.state.profile)
        return Response(
            content=content,
            media_type="application/pdf",
            headers={"Content-Disposition": f"attachment; filename={download_filename(doc)}"},
        )
    except Exception:
        logger.exception("Invoice generation error")
        return JSONResponse(status_code=500, content={"error": "Failed to generate invoice"})


@router.post("/receipt-number")
def next_receipt_number(request: Request) -> Response:
    try:
        number = request.app.state.receipt_numbers.generate_next()
    except Exception:
        logger.exception("Failed to generate receipt number")
        return JSONResponse(status_code=500, content={"error": "Failed to generate receipt number"})
    return JSONResponse({"receiptNumber": number})
