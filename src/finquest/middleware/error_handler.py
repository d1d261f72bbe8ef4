"""Global error handlers: every failure becomes a JSON ``{"detail": ...}`` body."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from finquest.errors import (
    FinQuestError,
    GenerationError,
    NotFoundError,
    ProviderNotConfiguredError,
    ValidationError,
)

logger = structlog.get_logger()


def status_for(exc: FinQuestError) -> int:
    """Map a domain error to its HTTP status code."""
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, ProviderNotConfiguredError):
        return 503
    if isinstance(exc, GenerationError):
        return 502
    return 500


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(FinQuestError)
    async def domain_exception_handler(request: Request, exc: FinQuestError) -> JSONResponse:
        """Convert domain errors to their mapped status."""
        status = status_for(exc)
        if status >= 500:
            logger.warning(
                "domain_error",
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    @app.exception_handler(SQLAlchemyError)
    async def store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            "store_error",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=503, content={"detail": "Data store unavailable"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions, always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
