"""
Request logging middleware for tracking HTTP requests.
"""
import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from voice_journal.utils.logger import get_logger

logger = get_logger("middleware")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every HTTP request with method, path, status and duration.

    A request ID is attached to `request.state` and echoed back in the
    `X-Request-ID` response header.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "Request started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip=request.client.host if request.client else "unknown"
        )

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration_ms=f"{(time.perf_counter() - start_time) * 1000:.2f}",
                error=str(e),
                exc_info=True
            )
            raise

        logger.info(
            "Request completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=f"{(time.perf_counter() - start_time) * 1000:.2f}"
        )

        response.headers["X-Request-ID"] = request_id
        return response
