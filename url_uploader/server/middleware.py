"""
HTTP middleware for the credential service and its error envelope.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data: https:"
    ),
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "unknown"


def error_response(code: str, message: str, status_code: int,
                   request_id: Optional[str] = None, details: Any = None,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    """Build the ``{"error": {...}}`` envelope returned on every failure."""
    error: Dict[str, Any] = {
        "code": code,
        "message": message,
        "timestamp": utc_timestamp(),
        "requestId": request_id or "unknown",
    }
    if details is not None:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and logs each request with its duration."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        client = request.client.host if request.client else "unknown"
        logger.info(
            f"Incoming request {request_id}: {request.method} {request.url.path} "
            f"from {client} ({request.headers.get('user-agent', '-')})"
        )

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            f"Request completed {request_id}: {request.method} {request.url.path} "
            f"{response.status_code} in {duration_ms:.0f}ms"
        )
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limit per client address on ``/api/`` paths."""

    def __init__(self, app, window_ms: int = 15 * 60 * 1000,
                 max_requests: int = 100, path_prefix: str = "/api/"):
        super().__init__(app)
        self.window_seconds = window_ms / 1000
        self.max_requests = max_requests
        self.path_prefix = path_prefix
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._last_sweep = time.monotonic()

    def _sweep(self, now: float) -> None:
        """Drop clients whose window has expired."""
        expired = [
            key for key, (started, _) in self._windows.items()
            if now - started >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now

    def _hit(self, key: str) -> Tuple[int, float]:
        """Count a request; return (count in window, seconds until reset)."""
        now = time.monotonic()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        started, count = self._windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        count += 1
        self._windows[key] = (started, count)
        return count, max(0.0, started + self.window_seconds - now)

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        key = request.client.host if request.client else "unknown"
        count, reset_in = self._hit(key)
        headers = {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(max(0, self.max_requests - count)),
            "RateLimit-Reset": str(int(reset_in + 0.999)),
        }

        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {key}")
            return error_response(
                "RATE_LIMIT_EXCEEDED",
                "Too many requests from this IP, please try again later.",
                429,
                request_id=get_request_id(request),
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds a restrictive set of security headers to every response."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
