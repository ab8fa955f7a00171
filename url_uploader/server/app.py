"""
FastAPI application exposing the credential brokers over HTTP.
"""
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import ServerSettings
from ..exceptions import UploaderError
from .middleware import (
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    error_response,
    get_request_id,
)
from .routes import router

logger = logging.getLogger(__name__)


def _validation_details(exc: RequestValidationError) -> list:
    return [
        {
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto the error envelope."""

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        request_id = get_request_id(request)
        details = _validation_details(exc)
        logger.warning(f"Request validation failed ({request_id}): {details}")
        return error_response(
            "VALIDATION_ERROR", "Invalid request data", 400,
            request_id=request_id, details=details,
        )

    @app.exception_handler(UploaderError)
    async def handle_uploader_error(request: Request, exc: UploaderError):
        request_id = get_request_id(request)
        if exc.status_code >= 500:
            logger.error(f"{exc.code} ({request_id}): {exc.message}")
        else:
            logger.warning(f"{exc.code} ({request_id}): {exc.message}")
        return error_response(
            exc.code, exc.message, exc.status_code,
            request_id=request_id, details=exc.details,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return error_response(
                "NOT_FOUND", f"Route {request.url.path} not found", 404,
                request_id=get_request_id(request),
            )
        return error_response(
            "HTTP_ERROR", str(exc.detail), exc.status_code,
            request_id=get_request_id(request),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        request_id = get_request_id(request)
        logger.exception(f"API Error ({request_id}) on {request.method} {request.url.path}")
        return error_response(
            "INTERNAL_ERROR", str(exc) or "Internal server error", 500,
            request_id=request_id,
        )


def create_app(settings: Optional[ServerSettings] = None) -> FastAPI:
    """Build the credential service.

    Args:
        settings: Server settings; read from the environment if omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or ServerSettings.from_env()

    app = FastAPI(title="URL Uploader Credential Service", version=__version__)
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    # Added innermost first; request logging wraps everything
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        window_ms=settings.rate_limit_window_ms,
        max_requests=settings.rate_limit_max_requests,
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(router, prefix="/api")
    register_exception_handlers(app)

    logger.info(f"Credential service configured for {settings.environment}")
    return app
