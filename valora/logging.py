"""Structured Logging

structlog-based logging shared by the engine:
- Colored, human-readable console output for development
- JSON lines for machine consumption
- Context binding for callers that want to tag parses (request id, tenant)

The engine only emits events; it never configures logging on import.
Applications call ``configure_logging()`` once at startup.
"""
import logging
import sys

import structlog
from structlog.types import EventDict, Processor


def _add_library_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that tags events with the emitting library."""
    event_dict.setdefault("library", "valora")
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both console and JSON configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_library_info,
    ]


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structlog and the stdlib root handler.

    Args:
        level: Log level name. Defaults to ``Settings.LOG_LEVEL``.
        json_logs: JSON output if True, colored console output if False.
            Defaults to ``Settings.LOG_JSON``.
    """
    from valora.config import get_settings

    settings = get_settings()
    level = level or settings.LOG_LEVEL
    json_logs = settings.LOG_JSON if json_logs is None else json_logs
    log_level = getattr(logging, level.upper(), logging.WARNING)

    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    lib_logger = logging.getLogger("valora")
    lib_logger.handlers = [handler]
    lib_logger.setLevel(log_level)
    lib_logger.propagate = False


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger backed by the stdlib logger ``name``.

    Until ``configure_logging`` runs, events go through stdlib level
    filtering, so a host application that never configures anything only
    sees warnings.
    """
    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to every subsequent event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


class LoggerRegistry:
    """Registry of loggers for the engine's subsystems."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"valora.{name}")
        return cls._loggers[name]


def schema_logger() -> structlog.stdlib.BoundLogger:
    """Logger for schema building and parsing events."""
    return LoggerRegistry.get("schema")


def types_logger() -> structlog.stdlib.BoundLogger:
    """Logger for type registry events."""
    return LoggerRegistry.get("types")
