"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from storefront_customizer.api.customizer import router as customizer_router
from storefront_customizer.app_logging import configure_logging
from storefront_customizer.containers import AppContainer
from storefront_customizer.domain.errors import (
    BackendUnavailableError,
    CustomizerError,
    ImageProcessingFailed,
    NotFoundError,
    StorageOperationError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[CustomizerError], int], ...] = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ImageProcessingFailed, 422),
    (StorageOperationError, 502),
    (BackendUnavailableError, 503),
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if not app.state.container.store.available:
            logger.warning("Storage unavailable; upload and cleanup will fail")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(customizer_router)

    @app.exception_handler(CustomizerError)
    async def customizer_error_handler(
        request: Request, exc: CustomizerError
    ) -> JSONResponse:
        status_code = error_status(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"statusCode": status_code, "success": False, "message": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def error_status(exc: CustomizerError) -> int:
    """Map a customizer error to its HTTP status code."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR
