from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from dealership.core.logging import get_logger
from dealership.services.exceptions import (
    ConflictError,
    DomainValidationError,
    PermissionDeniedError,
    ResourceNotFoundError,
    ServiceError,
)

logger = get_logger("dealership.errors")

# El orden importa: la subclase más específica gana
_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (ResourceNotFoundError, status.HTTP_404_NOT_FOUND),
    (DomainValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
)


def status_for(exc: ServiceError) -> int:
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        code = status_for(exc)
        logger.info(
            "Service error",
            extra={"error": type(exc).__name__, "status_code": code, "path": request.url.path},
        )
        return JSONResponse(status_code=code, content={"detail": exc.detail})
