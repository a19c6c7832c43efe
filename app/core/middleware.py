import json
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import settings
from app.core.logging import api_logger, app_logger


def client_ip(request: Request) -> str:
    """First address in X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = request.headers.get("X-Real-IP", "")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def describe_request(request: Request, status_code: int, **extra) -> str:
    """Access-log line: method, path, status, client, agent, query and any extras."""
    query = json.dumps(dict(request.query_params))
    parts = [
        f"{request.method} {request.url.path}",
        f"Status: {status_code}",
        f"IP: {client_ip(request)}",
        f"UserAgent: {request.headers.get('User-Agent', 'Unknown')}",
        f"Query: {query}",
    ]
    parts.extend(f"{key.capitalize()}: {value}" for key, value in extra.items())
    return " - ".join(parts)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Write one access-log line per request, skipping LOG_EXCLUDED_PATHS."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in settings.LOG_EXCLUDED_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            api_logger.error(describe_request(request, 500, error=e))
            raise

        duration_ms = int((time.perf_counter() - started) * 1000)
        try:
            api_logger.info(describe_request(request, response.status_code, duration=f"{duration_ms}ms"))
        except Exception as e:
            # Don't let logging errors break the API
            app_logger.warning(f"Error logging request: {e}")

        return response
