"""Request/response logging with masked client addresses.

Logs method, path, status and duration for every request except health
probes. Client IPs are masked; request bodies (decision content) are never
logged.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from utils.logging import get_logger
from utils.sanitize import mask_ip

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    EXCLUDE_PATHS = {"/health"}

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path in self.EXCLUDE_PATHS:
            return await call_next(request)

        method = request.method
        client_ip = mask_ip(request.client.host) if request.client else "unknown"

        logger.info(
            f"Request: {method} {path}",
            extra={
                "event": "request_start",
                "method": method,
                "path": path,
                "client_ip": client_ip,
            },
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            # Exception class only; messages may echo request content
            logger.error(
                f"Request failed: {method} {path} - {type(e).__name__}",
                extra={
                    "event": "request_error",
                    "method": method,
                    "path": path,
                    "duration_seconds": duration,
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        duration = time.perf_counter() - start_time
        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"Response: {method} {path} - {response.status_code} ({duration:.3f}s)",
            extra={
                "event": "request_complete",
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_seconds": duration,
            },
        )
        return response
