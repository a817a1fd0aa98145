"""FastAPI middleware for request tracing and metrics"""

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from loan_explainer.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_PATTERN = re.compile(r"[A-Za-z0-9-]{1,64}")


def resolve_request_id(header_value: str | None) -> str:
    """Caller's request ID when it is short and plain, otherwise a fresh UUID"""
    if header_value and REQUEST_ID_PATTERN.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add a request ID to each request for distributed tracing, reusing the caller's if present"""

    async def dispatch(self, request: Request, call_next):
        request_id = resolve_request_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request metrics"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        request_duration_histogram.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
        ).observe(duration)

        return response
