"""
Logging for the FinQuest API.

Routers and middleware log through structlog; the service layer uses plain
``logging.getLogger(__name__)``. Both end up on one root handler rendered by
``structlog.stdlib.ProcessorFormatter``, so every line carries the same
request context (``request_id``, ``path``, and ``user_id`` once the caller is
authenticated) plus the service name and environment.
"""

from __future__ import annotations

import logging
import uuid

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from finquest.config import Settings

SERVICE_NAME = "finquest-api"

# Chatty at INFO: one line per provider call or SQL statement.
_QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine", "aiosqlite")

_handler: logging.Handler | None = None


def _service_fields(environment: str) -> Processor:
    def add_service_fields(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("env", environment)
        return event_dict

    return add_service_fields


def bind_user_context(user_id: uuid.UUID | str) -> None:
    """Attach the authenticated user to every log line for the rest of the request."""
    structlog.contextvars.bind_contextvars(user_id=str(user_id))


def setup_logging(settings: Settings) -> None:
    """Route structlog and stdlib records through one JSON or console handler."""
    global _handler  # noqa: PLW0603

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _service_fields(settings.environment),
    ]
    if settings.log_format == "json":
        render: list[Processor] = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        render = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *render],
        )
    )

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    _handler = handler
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    quiet_level = logging.DEBUG if settings.debug else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
