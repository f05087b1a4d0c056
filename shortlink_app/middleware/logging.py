"""Request logging middleware."""

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from shortlink_app.logging_config import get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and its response status with duration."""

    def __init__(self, app, logger=None):
        super().__init__(app)
        self.logger = logger or get_logger("http")

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        self.logger.info("Incoming request: %s %s from %s", request.method, request.url.path, client_ip)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        self.logger.info(
            "Outgoing response: %s %s - Status: %d - Duration: %.2fms",
            request.method, request.url.path, response.status_code, duration_ms,
        )
        return response
