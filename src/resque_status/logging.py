"""
Structured logging for resque-status.

Every process that touches the registry (workers, the scheduler, a manager,
a monitoring script) logs through structlog with the same processor chain,
so registry events from many hosts line up in one aggregator.

Manifesto:
    - **Standardizes:** Same log format in every process sharing the store
    - **Structures:** JSON output for log aggregation
    - **Correlates:** Bound context (CLI command, host) on every event
    - **Flexes:** Console output for development, JSON for production

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="resque-status")
            ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. add_log_level / add_logger_name
          3. _add_service_metadata
          4. _ecs_field_names (JSON only)
          5. JSONRenderer | ConsoleRenderer

Examples:
    >>> from resque_status.logging import configure_logging, get_logger
    >>> configure_logging(level="INFO", json_format=True, service="scheduler")
    >>> logger = get_logger(__name__)
    >>> logger.info("scheduler_registered", pid=30677)

Tags:
    logging, structlog, observability, ecs, json-logging, resque-status

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_service_name = "resque-status"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service.name", _service_name)
    return event_dict


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename ``timestamp``/``level`` to their ECS names."""
    for plain, ecs in (("timestamp", "@timestamp"), ("level", "log.level")):
        if plain in event_dict:
            event_dict[ecs] = event_dict.pop(plain)
    return event_dict


def _build_processors(json_format: bool, add_timestamp: bool) -> list[Processor]:
    chain: list[Processor] = []
    if add_timestamp:
        chain.append(structlog.processors.TimeStamper(fmt="iso"))
    chain += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]
    if json_format:
        chain += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=True))
    return chain


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "resque-status",
    add_timestamp: bool = True,
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None to pick JSON
            when *stream* is not a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Include an ISO timestamp
        stream: Destination for log lines (stdout when omitted). The CLI
            passes stderr so command output stays parseable.
    """
    global _service_name
    _service_name = service

    target = stream if stream is not None else sys.stdout
    if json_format is None:
        json_format = not target.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=_build_processors(json_format, add_timestamp),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    # redis-py logs through the stdlib
    logging.basicConfig(format="%(message)s", stream=target, level=numeric_level)


def configure_logging_from_settings(
    settings: Any = None,
    *,
    level: str | None = None,
    service: str = "resque-status",
    stream: TextIO | None = None,
) -> None:
    """Configure logging from ``log_level`` and ``log_format`` in settings.

    An explicit *level* wins over ``settings.log_level``.
    """
    if settings is None:
        from resque_status.settings import get_settings

        settings = get_settings()
    configure_logging(
        level=level or settings.log_level,
        json_format=settings.log_format == "json",
        service=service,
        stream=stream,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind fields to every subsequent event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


__all__ = [
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
