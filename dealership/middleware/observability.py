from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from dealership.core.logging import get_logger, request_id_ctx
from dealership.core.metrics import normalize_path, record_request_metrics
from dealership.core.rate_limiter import client_ip


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Request latency metrics, request ids and structured logs for failed responses."""

    def __init__(self, app, *, log_4xx: bool = True, log_5xx: bool = True) -> None:
        super().__init__(app)
        self.logger = get_logger("dealership.requests")
        self.log_4xx = log_4xx
        self.log_5xx = log_5xx

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start
            record_request_metrics(request, 500, duration)
            self.logger.error(
                "Unhandled server error",
                extra=self._context(request, request_id, 500, duration),
                exc_info=True,
            )
            raise
        finally:
            request_id_ctx.reset(token)

        duration = time.perf_counter() - start
        status_code = response.status_code
        record_request_metrics(request, status_code, duration)
        response.headers.setdefault("X-Request-ID", request_id)

        if status_code >= 500 and self.log_5xx:
            self.logger.error("Server error response", extra=self._context(request, request_id, status_code, duration))
        elif status_code >= 400 and self.log_4xx:
            self.logger.warning("Client error response", extra=self._context(request, request_id, status_code, duration))
        return response

    @staticmethod
    def _context(request: Request, request_id: str, status_code: int, duration: float) -> dict:
        return {
            "method": request.method,
            "path": normalize_path(request),
            "status_code": status_code,
            "duration_ms": round(duration * 1000, 3),
            "client_ip": client_ip(request),
            "user_agent": request.headers.get("user-agent"),
            "request_id": request_id,
        }
