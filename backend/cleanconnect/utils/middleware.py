"""
backend/cleanconnect/utils/middleware.py

Access log for the API: one line per request with method, path, status and
latency, tagged with a request id that is echoed in the X-Request-ID
response header. Bodies are never logged (they carry balances and payments).
"""

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("cleanconnect.requests")

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[HTTP {request_id}] {request.method} {request.url.path} crashed")
            raise

        elapsed = (time.perf_counter() - started) * 1000
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"[HTTP {request_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} ({elapsed:.1f}ms)",
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
