from __future__ import annotations

import json
import logging
import logging.config
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from dealership.core.config import settings

_STANDARD_ATTRS = set(logging.makeLogRecord({}).__dict__.keys()) | {"request_id", "service"}

# Lo setea ObservabilityMiddleware al entrar cada request
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestContextFilter(logging.Filter):
    """Stamp every record with the service name and the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = settings.PROJECT_NAME
        record.request_id = getattr(record, "request_id", None) or request_id_ctx.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": getattr(record, "service", settings.PROJECT_NAME),
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}
        if context:
            payload["context"] = context
        return json.dumps(payload, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Logging JSON a stdout para la app, uvicorn y celery."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_context": {"()": RequestContextFilter}},
            "formatters": {"json": {"()": JsonFormatter}},
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "json",
                    "filters": ["request_context"],
                }
            },
            "root": {"handlers": ["stdout"], "level": level},
            "loggers": {
                "uvicorn.error": {"level": level},
                "uvicorn.access": {"handlers": ["stdout"], "level": level, "propagate": False},
                "celery": {"level": level},
                "sqlalchemy.engine": {"level": logging.WARNING},
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def security_alert(message: str, **context: Any) -> None:
    """Warning en ``dealership.security`` marcado con ``alert`` para las reglas de alertas."""
    get_logger("dealership.security").warning(message, extra={"alert": True, **context})
