"""Structured logging configuration using structlog."""
import logging
import sys
from typing import Any, Optional

import structlog
from pythonjsonlogger import jsonlogger

from avirato_dashboard.config.settings import settings

REDACTED = "***"
SECRET_KEYS = frozenset({"token", "password", "authorization", "access_token"})


def redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask bearer tokens and passwords passed as log fields."""
    for key in event_dict:
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def add_site_code_prefix(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Prefix the event with ``[site_code]`` so one property's run can be grepped.

    Site codes are numeric, so ``0`` still gets a prefix; only a missing or
    empty value is skipped.
    """
    site_code = event_dict.get("site_code")
    if site_code is not None and site_code != "":
        event_dict["event"] = f"[{site_code}] {event_dict.get('event', '')}"
    return event_dict


def _build_handler(log_format: str, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(jsonlogger.JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    handler.setLevel(level)
    return handler


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure stdlib logging and structlog.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL``
        log_format: ``json`` or ``console``, defaults to ``LOG_FORMAT``
    """
    level_name = level or settings.logging.level
    log_format = log_format or settings.logging.format
    log_level = getattr(logging, level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_build_handler(log_format, log_level))

    # httpx logs every request URL at INFO
    for noisy in ("httpcore", "httpx", "redis"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            redact_secrets,
            add_site_code_prefix,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound to ``name`` (typically ``__name__``)."""
    return structlog.get_logger(name)
