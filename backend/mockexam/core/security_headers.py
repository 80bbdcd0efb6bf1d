"""Security and cache headers added to every response."""

from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from mockexam.core.config import settings

STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# Exam papers, answer drafts and scored results
NO_STORE_PREFIXES = ("/exam", "/results", "/dashboard")


def is_private_path(path: str) -> bool:
    if not path.startswith(settings.API_PREFIX):
        return False
    return path[len(settings.API_PREFIX):].startswith(NO_STORE_PREFIXES)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(STATIC_HEADERS)
        if is_private_path(request.url.path):
            response.headers["Cache-Control"] = "no-store"
        if settings.ENV == "prod" and request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
