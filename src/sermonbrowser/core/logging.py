"""
Structured logging for the sermon lifecycle engine.

Every install, upgrade step and uninstall action is reported as a
structured event, so an operator can reconstruct what a cascade did
after the fact instead of reading a single "upgrade finished" notice.

Manifesto:
    Migrations run rarely and unattended.  When one half-applies, the log
    is the only record of which statement failed:

    - **Structures:** key/value events, JSON for aggregation
    - **Correlates:** from_version / to_version bound per cascade step
    - **Flexes:** console output for a terminal, JSON otherwise

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="sermonbrowser")
              │
              ▼
        structlog processor chain:
          1. TimeStamper(iso)
          2. merge_contextvars     ← bind_context / LogContext
          3. add_log_level
          4. add_logger_name
          5. service metadata
          6. JSONRenderer | ConsoleRenderer

        logger = get_logger(__name__)
        logger.info("upgrade.step_applied", from_version="1.4", to_version="1.5")

Guardrails:
    ❌ DON'T: print() progress from migration code
    ✅ DO: emit dotted event names with keyword fields

Tags:
    logging, structlog, observability, migrations
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "sermonbrowser"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "sermonbrowser",
) -> None:
    """Configure structlog for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None picks JSON
            when stdout is not a terminal
        service: Value of the ``service`` field on every event
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    numeric_level = getattr(logging, level.upper())

    shared_processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(from_version="1.5", to_version="1.6"):
            logger.info("upgrade.step_started")
        # from_version / to_version unbound here
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
