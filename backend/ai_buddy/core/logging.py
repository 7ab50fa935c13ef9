"""
Structured logging via structlog.

All application log entries carry consistent fields:
  timestamp, level, event, connection_id, user_id, tool_name,
  call_id, error_type, ...

Per-connection fields are bound through structlog contextvars, so every
event emitted while a WebSocket turn runs (including from the graph nodes)
carries the connection that triggered it.

Usage:
    from ai_buddy.core.logging import get_logger
    log = get_logger(__name__)
    log.info("turn_complete", messages=4)
"""

import logging
import sys

import structlog
from ai_buddy.core.config import get_settings


def configure_logging() -> None:
    """
    Configure structlog processors. Call once at application startup.
    Development: pretty colored output.
    Production:  JSON output (machine-readable for cloud logging).
    """
    settings = get_settings()
    is_dev = settings.environment == "development"
    level = logging.getLevelName(settings.log_level.upper()) if settings.log_level else None
    if not isinstance(level, int):
        level = logging.DEBUG if is_dev else logging.INFO

    # structlog renders; stdlib logging owns the handler and the level
    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level)

    shared_processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_dev:
        processors = shared_processors + [structlog.dev.ConsoleRenderer()]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_connection(connection_id: str, user_id: str | None = None) -> None:
    """Attach connection identity to every event logged from the current task."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(connection_id=connection_id, user_id=user_id)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)
