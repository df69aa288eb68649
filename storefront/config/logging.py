"""
Logging Configuration
====================

structlog on top of the standard library logging tree. Development gets
colored console lines; production gets one JSON object per line. Values
bound with ``bind_request_context`` (the request id, the store being
rendered) are merged into every event logged while handling that request.
"""

import logging
import logging.config
import sys
from typing import Dict, Any, TYPE_CHECKING
import structlog
from structlog.types import Processor

from .settings import get_settings

if TYPE_CHECKING:
    from .settings import Settings

LOG_FILE_NAME = "storefront.log"


def setup_logging() -> None:
    """Configure structlog and the standard library logging tree."""
    settings = get_settings()
    production = settings.environment == "production"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=production),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=settings.environment == "development"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(get_logging_config(settings))


def get_logging_config(settings: "Settings") -> Dict[str, Any]:
    """dictConfig for the current environment; tests log to the console only."""
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": settings.log_level,
            "formatter": "json" if settings.environment == "production" else "plain",
            "stream": sys.stdout,
        },
    }
    if settings.environment != "testing":
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": settings.log_level,
            "formatter": "json",
            "filename": str(settings.storage_path / "logs" / LOG_FILE_NAME),
            "maxBytes": 5 * 1024 * 1024,
            "backupCount": 3,
            "delay": True,
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(message)s"},
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
            },
        },
        "handlers": handlers,
        "root": {"level": settings.log_level, "handlers": list(handlers)},
        "loggers": {
            "uvicorn.access": {"level": "WARNING"},
        },
    }


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def ensure_log_directories() -> None:
    settings = get_settings()
    if settings.environment != "testing":
        (settings.storage_path / "logs").mkdir(parents=True, exist_ok=True)


# Initialize logging on import
ensure_log_directories()
setup_logging()
