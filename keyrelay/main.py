"""
FastAPI application entrypoint for the key relay.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from keyrelay.api.cors import (
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    EmptyPreflightCORSMiddleware,
)
from keyrelay.api.routes import router as api_router
from keyrelay.clients.secret_store import SecretStoreError
from keyrelay.core.config import get_settings
from keyrelay.core.errors import RelayError
from keyrelay.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=HTTPStatus.BAD_REQUEST,
        content={"error": f"Invalid request body: {detail}"},
    )


async def secret_store_error_handler(
    request: Request, exc: SecretStoreError
) -> JSONResponse:
    logger.error("Secret store failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": str(exc)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Starting key relay in %s environment", settings.environment)

    app = FastAPI(
        title="AI Toolbox Key Relay",
        version="0.1.0",
        description="Credential-gated relay to third-party AI provider APIs.",
    )
    app.add_middleware(
        EmptyPreflightCORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=list(CORS_ALLOW_METHODS),
        allow_headers=list(CORS_ALLOW_HEADERS),
    )
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SecretStoreError, secret_store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
