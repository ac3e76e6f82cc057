"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from series_tracker.api.admin import router as admin_router
from series_tracker.api.auth import router as auth_router
from series_tracker.api.catalog import router as catalog_router
from series_tracker.api.series import router as series_router
from series_tracker.app_logging import configure_logging
from series_tracker.containers import AppContainer
from series_tracker.services.errors import (
    CatalogError,
    CatalogNotFoundError,
    CatalogRateLimitError,
    DuplicateSeriesError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from series_tracker.services.launch_data import LaunchDataError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(series_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.exception_handler(LaunchDataError)
    async def launch_data_error(_: Request, exc: LaunchDataError) -> JSONResponse:
        logger.warning("Rejected launch data", extra={"reason": exc.reason.value})
        return JSONResponse(
            {"error": "unauthorized", "reason": exc.reason.value},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    @app.exception_handler(UnauthorizedError)
    async def unauthorized(_: Request, exc: UnauthorizedError) -> JSONResponse:
        return _error(status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(ValidationError)
    async def invalid_request(_: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(RequestValidationError)
    async def invalid_body(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, _describe_validation(exc))

    @app.exception_handler(NotFoundError)
    async def not_found(_: Request, exc: NotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, exc.message)

    @app.exception_handler(DuplicateSeriesError)
    async def duplicate(_: Request, exc: DuplicateSeriesError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, exc.message)

    @app.exception_handler(CatalogError)
    async def catalog_error(_: Request, exc: CatalogError) -> JSONResponse:
        if isinstance(exc, CatalogRateLimitError):
            code = status.HTTP_429_TOO_MANY_REQUESTS
        elif isinstance(exc, CatalogNotFoundError):
            code = status.HTTP_404_NOT_FOUND
        else:
            code = status.HTTP_502_BAD_GATEWAY
        return JSONResponse(
            {"error": exc.message, "upstream_status": exc.status},
            status_code=code,
        )

    @app.exception_handler(Exception)
    async def unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error", extra={"path": request.url.path}, exc_info=exc
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            _format_internal_error(container, exc, "Internal error"),
        )

    return app


def _error(code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=code)


def _describe_validation(exc: RequestValidationError) -> str:
    """Return the first validation problem as a short message."""
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def _format_internal_error(
    container: AppContainer, exc: Exception, fallback: str
) -> str:
    """Return a generic error message with debug info outside production."""
    if container.settings.is_local:
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback
