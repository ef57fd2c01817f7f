import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from candidate_store.exceptions import CandidateStoreError
from candidate_store.logging_config import setup_logging
from candidate_store.settings import Settings, get_settings
from candidate_store.storage.facade import CandidateStorage, create_storage
from services.api.exception_handlers import candidate_store_exception_handler
from services.api.routes import files_router, router as v1_router


def create_app(settings: Settings | None = None, storage: CandidateStorage | None = None) -> FastAPI:
    """Build the API around an explicitly constructed storage facade.

    ``storage`` wins over ``settings``; with neither, settings are loaded from
    ``CANDIDATE_STORE_CONFIG`` (or ``config/default.yaml``).
    """
    json_logging = os.getenv("JSON_LOGGING", "false").lower() in {"true", "1", "yes"}
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_file = os.getenv("LOG_FILE")
    setup_logging(
        level=log_level,
        json_format=json_logging,
        log_file=Path(log_file) if log_file else None,
    )

    if storage is None:
        storage = create_storage(settings or get_settings())

    app = FastAPI(
        title="Candidate Store API",
        version="0.1.0",
        description="Candidate interview sessions on the filesystem or S3",
    )
    app.state.storage = storage

    ui_origin = os.getenv("UI_ORIGIN", "http://localhost:3000")
    allowed_origins = sorted({ui_origin, "http://localhost:3000", "http://127.0.0.1:3000"})
    logger.info(f"CORS allowed origins: {allowed_origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz", tags=["meta"])
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    app.add_exception_handler(CandidateStoreError, candidate_store_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={
                "error": type(exc).__name__,
                "message": str(exc),
            },
        )

    app.include_router(v1_router)
    app.include_router(files_router)

    logger.info(
        "API initialised with {backend} storage under prefix={prefix}",
        backend=storage.storage_type,
        prefix=storage.prefix,
    )
    return app


__all__ = ["create_app"]
