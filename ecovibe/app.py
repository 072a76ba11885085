"""
FastAPI application entry point for the site service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ecovibe.config import get_settings
from ecovibe.dependencies import get_catalog
from ecovibe.errors import NotFoundError, StorageError, StoreBusyError
from ecovibe.pages import create_pages_router
from ecovibe.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_catalog()
    yield


def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


def _store_busy(request: Request, exc: StoreBusyError) -> JSONResponse:
    logger.error("Database busy after retries: %s", exc)
    return JSONResponse(
        status_code=503, content={"detail": "Database busy, please try again"}
    )


def _storage_failed(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    app = FastAPI(title=f"{settings.site_name} site", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(StoreBusyError, _store_busy)
    app.add_exception_handler(StorageError, _storage_failed)
    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(create_pages_router())
    return app


app = create_app()
