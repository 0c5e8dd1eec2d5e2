"""FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from inkpad import __version__
from inkpad.config import settings
from inkpad.domain.exceptions import IngestionRejectedError, StorageError
from inkpad.logging import logger
from inkpad.media.storage import MediaStore


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        MediaStore(settings.upload_dir, settings.url_prefix).ensure_dir()
        logger.info("Serving uploads from %s at %s", settings.upload_dir, settings.url_prefix)
        yield

    app = FastAPI(
        title="inkpad media API",
        version=__version__,
        lifespan=lifespan,
    )

    # Import routers inside create_app() to avoid circular imports at module load time
    from inkpad.api.routers.media import router as media_router

    app.include_router(media_router)

    # Issued URLs are relative to this mount
    app.mount(
        settings.url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )

    @app.exception_handler(IngestionRejectedError)
    def _rejected(request: Request, exc: IngestionRejectedError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(StorageError)
    def _storage(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc.message)
        return JSONResponse(status_code=500, content={"error": "Failed to store uploaded image."})

    @app.get("/health", tags=["ops"])
    def health() -> dict:
        return {"status": "ok"}

    return app
