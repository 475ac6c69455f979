"""
Structured logging for the gateway proxy.

Events are rendered by structlog as JSON and written through the stdlib root
logger, so uvicorn and library logs share one stdout stream. Credentials and
request signatures never reach the output: any event key that names one is
masked before rendering, including keys inside logged header mappings.
"""
import logging
import sys
from typing import Any, Mapping

import structlog
from pythonjsonlogger import jsonlogger

from payku_gateway import __version__
from payku_gateway.config import get_settings

REDACTED = "[REDACTED]"

# Compared case-insensitively with underscores read as hyphens
SENSITIVE_KEYS = frozenset(
    {
        "api-key",
        "payku-api-key",
        "x-api-key",
        "secret-key",
        "payku-secret-key",
        "signature",
        "x-signature",
        "redis-token",
        "password",
        "authorization",
    }
)

# Libraries that log every request line at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and key.lower().replace("_", "-") in SENSITIVE_KEYS


def _mask(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            k: REDACTED if _is_sensitive(k) else _mask(v) for k, v in value.items()
        }
    return value


def redact_secrets(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Mask credential and signature fields in an event."""
    for key in list(event_dict):
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _mask(event_dict[key])
    return event_dict


def add_service_context(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag every event with the service name, version and environment."""
    settings = get_settings()
    event_dict.setdefault("service", settings.app_name)
    event_dict.setdefault("version", __version__)
    event_dict.setdefault("app_env", settings.app_env)
    return event_dict


def setup_logging() -> None:
    """Configure structlog and the stdout JSON handler from settings."""
    settings = get_settings()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            add_service_context,
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"asctime": "@timestamp", "levelname": "level", "name": "logger"},
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "logging_configured",
        log_level=settings.log_level,
        app_env=settings.app_env,
        payku_base_url=settings.payku_base_url,
    )
