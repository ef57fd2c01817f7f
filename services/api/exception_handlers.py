"""FastAPI exception handlers for custom exceptions."""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from candidate_store.exceptions import (
    AccessDeniedError,
    CandidateStoreError,
    ConfigurationError,
    FileNotFoundError as StoreFileNotFoundError,
    StorageError,
    UnsupportedOperationError,
    ValidationError,
)


async def candidate_store_exception_handler(request: Request, exc: CandidateStoreError) -> JSONResponse:
    """Handle candidate-store exceptions."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, AccessDeniedError):
        status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, StoreFileNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, UnsupportedOperationError):
        status_code = status.HTTP_501_NOT_IMPLEMENTED
    elif isinstance(exc, StorageError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ConfigurationError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(
        "Candidate store exception: {type} - {message}",
        type=type(exc).__name__,
        message=str(exc),
        details=exc.details,
    )

    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )
