"""
FastAPI application entrypoint for the spreadsheet-backed obligations store.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from sheetstore.api.routes import handle_sheetstore_error, router as api_router
from sheetstore.core.config import get_settings
from sheetstore.core.errors import SheetStoreError
from sheetstore.core.logging import configure_logging
from sheetstore.dependencies import get_assertion_signer, get_http_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # A malformed service-account key must stop the process here.
    get_assertion_signer()
    try:
        yield
    finally:
        await get_http_client().aclose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Sheetstore",
        version="0.1.0",
        description="Spreadsheet-backed records API for the obligations dashboard.",
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix="/api")
    app.add_exception_handler(SheetStoreError, handle_sheetstore_error)
    return app


app = create_app()

__all__ = ["app", "create_app"]
