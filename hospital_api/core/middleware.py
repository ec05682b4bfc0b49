"""
Custom middleware for the FastAPI application.
"""
import time
import logging
import uuid
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..exceptions import ErrorCode, STATUS_CODES, error_body

# Set up logging
logger = logging.getLogger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging request and response information.
    """
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request {request_id} started: {request.method} {request.url.path} from {client_host}")

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {request.method} {request.url.path} "
                f"- Error: {str(e)} - Duration: {process_time:.4f}s"
            )
            raise

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        response.headers["X-Request-ID"] = request_id

        logger.info(
            f"Request {request_id} completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware adding conservative security headers to every response.

    Strict-Transport-Security is only sent when ``hsts`` is enabled.
    """
    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "SAMEORIGIN",
        "Referrer-Policy": "no-referrer",
        "X-DNS-Prefetch-Control": "off",
        "Cross-Origin-Opener-Policy": "same-origin",
        "X-XSS-Protection": "0",
    }

    def __init__(self, app: ASGIApp, hsts: bool = False):
        super().__init__(app)
        self.hsts = hsts

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        if self.hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware for basic per-IP rate limiting of API routes.

    This is a simple in-memory rate limiter; counters are per process.
    """
    def __init__(self, app: ASGIApp, rate_limit: int = 100, window_seconds: int = 900,
                 path_prefix: str = "/api/"):
        super().__init__(app)
        self.rate_limit = rate_limit
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_sweep = 0.0

    def _evict_idle_clients(self, now: float):
        """Drop clients with no request inside the window, at most once per window."""
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        idle = [ip for ip, stamps in self.requests.items() if not stamps or now - stamps[-1] >= self.window_seconds]
        for ip in idle:
            del self.requests[ip]

    async def dispatch(self, request: Request, call_next):
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()

        self._evict_idle_clients(now)
        timestamps = self.requests[client_ip]
        while timestamps and now - timestamps[0] >= self.window_seconds:
            timestamps.popleft()

        if len(timestamps) >= self.rate_limit:
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=STATUS_CODES[ErrorCode.RATE_LIMITED],
                content=error_body(
                    ErrorCode.RATE_LIMITED,
                    "Too many requests from this IP, please try again later."
                ),
            )

        timestamps.append(now)
        return await call_next(request)


def setup_middlewares(app, settings):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
        settings: Application settings
    """
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            rate_limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
            path_prefix=f"{settings.api_prefix}/",
        )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
