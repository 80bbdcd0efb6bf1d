"""Request ID middleware: correlates logs, error bodies and audit rows."""

import re
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from mockexam.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def incoming_request_id(request: Request) -> str:
    """Client-supplied request id if it is safe to echo and log, else a new UUID."""
    supplied = request.headers.get(REQUEST_ID_HEADER)
    if supplied and _VALID_REQUEST_ID.match(supplied):
        return supplied
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to request.state and the response, and log each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = incoming_request_id(request)
        request.state.request_id = request_id
        fields = {"request_id": request_id, "method": request.method, "path": request.url.path}

        started = time.perf_counter()
        logger.info("Request started", extra={"event": "request_started", **fields})
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    "event": "request_failed",
                    **fields,
                    "status_code": 500,
                    "latency_ms": int((time.perf_counter() - started) * 1000),
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "Request completed",
            extra={
                "event": "request_completed",
                **fields,
                "status_code": response.status_code,
                "latency_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return response
