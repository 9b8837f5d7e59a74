"""
Request logging middleware. Logs method, path, status, duration and a request
id. Never logs headers, cookies, body, or query params.
"""
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _status_level(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # reuse the caller's id so a proxy trace lines up with ours
        request_id = (request.headers.get(REQUEST_ID_HEADER) or "").strip()[:64] or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "request_failed method=%s path=%s duration_ms=%.1f",
                request.method, request.scope.get("path", ""), (time.perf_counter() - start) * 1000,
                extra={"request_id": request_id},
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.log(
            _status_level(response.status_code),
            "request_finished method=%s path=%s status=%s duration_ms=%.1f",
            request.method, request.scope.get("path", ""), response.status_code, duration_ms,
            extra={"request_id": request_id},
        )
        return response
