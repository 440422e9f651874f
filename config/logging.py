"""
Logging setup for the engine.

structlog builds the event dict; the stdlib ``logging`` handler renders it,
so engine events and third-party stdlib records share one output stream.
Console output in debug mode, one JSON object per line otherwise.

Usage:
    from config.logging import configure_logging

    configure_logging(debug=True)
"""

import logging.config
import sys
from typing import Any

import structlog

ENGINE_LOGGERS = ("portfolio_tracker", "portfolio_tracker.services")


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(debug: bool) -> Any:
    if debug:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


def get_logging_config(debug: bool = False, level: str | None = None) -> dict[str, Any]:
    """
    Return a ``logging.config.dictConfig`` dictionary.

    Args:
        debug: Console renderer when True, JSON renderer when False
        level: Level for the engine loggers; DEBUG in debug mode, INFO otherwise

    Returns:
        dictConfig-ready logging configuration.
    """
    engine_level = level or ("DEBUG" if debug else "INFO")
    post_processors = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if not debug:
        post_processors.append(structlog.processors.dict_tracebacks)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [*post_processors, _renderer(debug)],
                "foreign_pre_chain": _shared_processors(),
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": sys.stdout,
            },
        },
        "root": {
            "handlers": ["console"],
            "level": "WARNING",
        },
        "loggers": {
            name: {"handlers": ["console"], "level": engine_level, "propagate": False}
            for name in ENGINE_LOGGERS
        },
    }


def configure_logging(debug: bool = False, level: str | None = None) -> None:
    """
    Configure stdlib logging and structlog together.

    Call once at startup, before any engine module logs. Loggers created
    with ``structlog.get_logger`` before this call pick up the configuration
    on first use.
    """
    logging.config.dictConfig(get_logging_config(debug=debug, level=level))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
