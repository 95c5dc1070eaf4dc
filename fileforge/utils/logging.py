"""Structured logging setup using structlog.

Every event passes one shared processor chain and is rendered either by a
coloured ConsoleRenderer while developing or by a JSONRenderer when the
service runs in production.  :func:`configure_logging_from_settings` picks
the level and renderer from :class:`~fileforge.config.settings.Settings`
so entry points never read the environment themselves.

Standard-library ``logging`` (uvicorn, httpx) is routed through the same
formatter.  httpx and httpcore log one INFO line per request, which during
CloudConvert polling drowns the conversion events, so they are held at
WARNING.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from fileforge.config.settings import Settings

_QUIET_LOGGERS = ("httpx", "httpcore")

# Event keys whose values must never reach a log sink.
_SECRET_KEYS = frozenset({"api_key", "authorization", "cloudconvert_api_key", "signature"})
_REDACTED = "***"


def redact_secrets(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask credential-like values before rendering."""
    for key in _SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = _REDACTED
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    *,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of coloured console output.
        stream: Destination for both structlog and stdlib output
                (default ``sys.stdout``).
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")
    out = stream or sys.stdout

    shared_processors = _shared_processors()
    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *shared_processors,
            renderer,
        ],
    )
    handler = logging.StreamHandler(out)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def configure_logging_from_settings(app_settings: Settings, *, stream: TextIO | None = None) -> structlog.BoundLogger:
    """Apply ``LOG_LEVEL`` and ``APP_ENV`` (``production`` means JSON output)."""
    return configure_logging(
        log_level=app_settings.log_level,
        json_output=app_settings.app_env == "production",
        stream=stream,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger bound to *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
