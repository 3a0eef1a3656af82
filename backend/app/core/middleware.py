"""
Shikkha Hub - HTTP Middleware

Access logging with request ids, security headers, and a request body cap.
"""

import logging
import time
from typing import Callable, Dict
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    set_school_id,
    generate_request_id,
)


QUIET_PATHS = frozenset({"/", "/health", "/health/live", "/favicon.ico", "/docs", "/redoc", "/openapi.json"})
QUIET_SUFFIXES = (".js", ".css", ".png", ".ico")

SLOW_REQUEST_MS = 1000

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def is_quiet(path: str) -> bool:
    """Health checks, docs and static assets are served without access log lines"""
    return path in QUIET_PATHS or path.startswith("/static/") or path.endswith(QUIET_SUFFIXES)


def level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's X-Request-ID or a fresh one),
    logs one line per completed request with the caller resolved by auth,
    and echoes X-Request-ID / X-Response-Time on the response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        started = time.perf_counter()
        path = request.url.path
        label = f"{request.method} {path}"

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{label} raised {type(exc).__name__}",
                exc_info=True,
                extra={"event_type": "http_request_error", "http_path": path, "error_type": type(exc).__name__},
            )
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

            if not is_quiet(path):
                logger.log(
                    level_for_status(response.status_code),
                    f"{label} {response.status_code} {elapsed_ms:.0f}ms",
                    extra={
                        "event_type": "http_request",
                        "http_method": request.method,
                        "http_path": path,
                        "http_status": response.status_code,
                        "duration_ms": round(elapsed_ms, 2),
                        "client_ip": request.client.host if request.client else None,
                        "caller_id": getattr(request.state, "user_id", None),
                    },
                )
                if elapsed_ms > SLOW_REQUEST_MS:
                    logger.log_performance(label, elapsed_ms, SLOW_REQUEST_MS)
            return response
        finally:
            # Context vars would otherwise leak into the next request on this task
            set_request_id("")
            set_user_id("")
            set_school_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds max_size with 413"""

    def __init__(self, app: ASGIApp, max_size: int = 10 * 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"[Request] {request.url.path} body of {declared} bytes over the {self.max_size} byte limit",
                extra={"event_type": "request_too_large", "http_path": request.url.path},
            )
            return JSONResponse(
                status_code=413,
                content={
                    "error": f"Request body too large. Maximum size is {self.max_size // (1024 * 1024)}MB",
                    "code": "REQUEST_TOO_LARGE",
                },
            )
        return await call_next(request)
