import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.platform.logger import get_logger

logger = get_logger("request")


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Logs method, path, client address, status and latency of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = (time.perf_counter() - start) * 1000

        client_ip = request.client.host if request.client else "-"
        logger.info(
            f"[{request.method}] {request.url.path} {client_ip} "
            f"{response.status_code} {latency_ms:.1f}ms"
        )
        return response
