from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from dealership.core.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach the configured security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        headers = {
            "Strict-Transport-Security": settings.STRICT_TRANSPORT_SECURITY,
            "X-Frame-Options": settings.X_FRAME_OPTIONS,
            "X-Content-Type-Options": settings.X_CONTENT_TYPE_OPTIONS,
            "Referrer-Policy": settings.REFERRER_POLICY,
        }
        # Swagger UI carga scripts externos; la CSP estricta rompería /docs.
        if not request.url.path.startswith(("/docs", "/redoc")):
            headers["Content-Security-Policy"] = settings.CONTENT_SECURITY_POLICY
        for name, value in headers.items():
            if value:
                response.headers.setdefault(name, value)
        return response
