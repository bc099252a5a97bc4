"""Structured logging for the rules engine.

Every resolution the engine performs is logged through structlog: dice
rolls at debug, rejected or capped proposals at warning, combat and level
transitions at info. Together they form an audit trail of what the
narrative layer asked for and what the rules actually allowed.

Example:
    >>> from dnd_rules.core.logging import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.warning("Reward capped", reward_type="gold", proposed=500, applied=75)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from dnd_rules.core.config import Settings, get_settings


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger


ENGINE_NAME = "dnd_rules"

_STDLIB_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def add_engine_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every event with the engine name.

    Embedding applications often route several libraries into one sink;
    the tag keeps rules decisions separable from narrative-layer logs.
    """
    event_dict.setdefault("engine", ENGINE_NAME)
    return event_dict


def _renderer(json_format: bool) -> list[Processor]:
    if json_format:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [
        structlog.dev.ConsoleRenderer(
            colors=sys.stdout.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(
    settings: Settings | None = None,
    *,
    level: str | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
) -> None:
    """Configure engine-wide logging.

    Keyword arguments override the values taken from settings.

    Args:
        settings: Engine settings; the cached singleton when omitted.
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit one JSON object per event.
        log_file: Optional path that also receives stdlib log records.

    Example:
        >>> configure_logging(level="DEBUG")
    """
    settings = settings or get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    as_json = settings.log_json if json_format is None else json_format

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_engine_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        *_renderer(as_json),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=settings.is_production,
    )

    logging.basicConfig(format=_STDLIB_FORMAT, level=log_level, stream=sys.stdout, force=True)
    if log_file:
        handler = logging.FileHandler(log_file, encoding="utf-8")
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(_STDLIB_FORMAT))
        logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structlog logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables that will be included in all subsequent logs.

    The game master binds the session id for the duration of one call so
    every roll and rejection can be traced back to its save.

    Example:
        >>> bind_context(session_id="abc123")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "ENGINE_NAME",
    "add_engine_context",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
