"""FastAPI middleware for request tracing, metrics and crawler headers"""

import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from ravehub_gateway.infrastructure.observability.metrics import request_duration_histogram

NOINDEX_PREFIXES = ("/v1/webhooks", "/v1/tickets", "/v1/admin")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request for distributed tracing"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request metrics"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        # Route template keeps transaction ids out of the label set
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).observe(duration)

        return response


class NoIndexMiddleware(BaseHTTPMiddleware):
    """Keep payment and back-office endpoints out of search indexes"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(NOINDEX_PREFIXES):
            response.headers["X-Robots-Tag"] = "noindex"
        return response
