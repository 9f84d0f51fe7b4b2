from __future__ import annotations
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoicer.api.routes import documents
from invoicer.config import Settings, get_settings, load_business_profile
from invoicer.services.numbering_service import ReceiptNumberService
from invoicer.storage.value_store import JsonValueStore
from invoicer.utils.logging import setup_logger


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logger("invoicer", settings.log_level, settings.log_file)

    app = FastAPI(title="Invoice & Receipt API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.profile = load_business_profile(settings)
    app.state.receipt_numbers = ReceiptNumberService(JsonValueStore(settings.receipt_counter_file))

    app.include_router(documents.router, prefix="/api")

    @app.get("/")
    def root() -> dict[str, str]:
        return {"status": "ok", "service": "invoicer"}

    return app


def run(settings: Optional[Settings] = None) -> None:
    import uvicorn

    settings = settings or get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
