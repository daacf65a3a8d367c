"""structlog configuration for docchat.

One shared processor chain feeds either a coloured console renderer
(development) or a JSON renderer (production, or when forced).  Every
event carries ``service="docchat"``; request-scoped fields such as
``request_id`` and ``user_id`` live in structlog context vars, bound by
:func:`bind_request_context` at the start of each HTTP request, so every
line logged while serving it can be correlated.

Standard-library ``logging`` goes through the same formatter, so uvicorn,
httpx and chromadb lines look like ours.  httpx and chromadb are capped at
WARNING because they log every request and every collection call at INFO.
"""

import logging
import os
import sys
import uuid
from typing import Any

import structlog

SERVICE_NAME = "docchat"

_NOISY_LOGGERS = ("httpx", "httpcore", "chromadb")


def _add_service(
    _logger: Any, _method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and route stdlib logging through it.

    Parameters
    ----------
    log_level:
        DEBUG, INFO, WARNING or ERROR.
    json_output:
        Force JSON lines.  Otherwise JSON is used only when ``APP_ENV`` is
        ``production``.
    """
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = log_level.upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Named logger; configures defaults if nothing has yet."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


def new_request_id() -> str:
    return uuid.uuid4().hex[:16]


def bind_request_context(request_id: str, **fields: Any) -> None:
    """Start a fresh per-request context; ``None`` fields are dropped."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        **{key: value for key, value in fields.items() if value is not None},
    )


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
