"""structlog setup for the engine.

Engine modules log through ``structlog.get_logger(__name__)`` with
key/value events; HTTP plumbing logs through the stdlib ``logging``
module. Both end up in one stdout handler, rendered as JSON lines or as
console output depending on LOG_FORMAT.

Timestamps are local wall-clock time, the same clock schedules fire on,
so "09:00 instance went overdue at 09:01" reads directly off the log.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog
from app.config import Settings, get_settings

# Libraries that log every statement or request at INFO
_NOISY_LOGGERS = ("uvicorn.access", "aiosqlite")


def _app_context(settings: Settings):
    """Processor stamping every entry with the app name and environment."""

    def processor(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]):
        event_dict.setdefault("app", settings.APP_NAME)
        event_dict.setdefault("env", settings.ENVIRONMENT)
        return event_dict

    return processor


def _renderer(settings: Settings):
    fmt = settings.LOG_FORMAT.lower()
    if fmt == "json" and not settings.is_development:
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    # Arabic schedule names stay readable in the console
    return structlog.dev.ConsoleRenderer(colors=fmt != "plain")


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Route structlog and stdlib logging through one formatted handler."""
    settings = settings or get_settings()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        _app_context(settings),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings),
            ],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # SQLALCHEMY_ECHO turns statement logging back on
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.SQLALCHEMY_ECHO else logging.WARNING
    )


def bind_request_context(request_id: str, actor: Optional[str] = None) -> None:
    """Attach request fields to every log entry emitted while handling it."""
    structlog.contextvars.clear_contextvars()
    fields = {"request_id": request_id}
    if actor:
        fields["actor"] = actor
    structlog.contextvars.bind_contextvars(**fields)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
