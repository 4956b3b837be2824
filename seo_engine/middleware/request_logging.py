"""Request logging middleware for the public SEO endpoints."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from seo_engine.core.logging import bind_context, clear_context, get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds request_id, host and path to every log line of a request.

    The host matters here: it is what tenant identification reads first.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())

        bind_context(
            request_id=request_id,
            method=request.method,
            host=request.url.hostname or "",
            path=request.url.path,
        )
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            process_time = time.perf_counter() - start_time

            logger.info(
                "request_completed",
                status_code=response.status_code,
                process_time_ms=round(process_time * 1000, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            logger.exception(
                "request_failed",
                error=str(exc),
                process_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        finally:
            clear_context()
