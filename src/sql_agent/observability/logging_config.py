"""
Structured Logging Configuration
================================

structlog routed through stdlib logging. Events are key/value pairs such as
``agent_cycle cycle=2`` or ``tool_failed tool=query-sql``; long SQL and tool
payloads are clipped before rendering.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Longest string value rendered for any event field
MAX_FIELD_LENGTH = 500

NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "anthropic")


def clip_long_values(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Shorten oversized string fields (query results, schema dumps)."""
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_FIELD_LENGTH:
            event_dict[key] = f"{value[:MAX_FIELD_LENGTH]}... ({len(value)} chars)"
    return event_dict


def _use_json(json_format: bool | None) -> bool:
    if json_format is not None:
        return json_format
    if os.getenv("LOG_FORMAT", "").lower() == "json":
        return True
    return os.getenv("ENVIRONMENT", "development") == "production"


def setup_logging(level: str | None = None, json_format: bool | None = None) -> None:
    """
    Configure logging for the CLI and the API.

    Args:
        level: Log level (default: LOG_LEVEL or INFO)
        json_format: Render JSON lines (default: LOG_FORMAT=json or ENVIRONMENT=production)

    Output goes to stderr so CLI reports on stdout stay clean.
    """
    log_level = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper())

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        clip_long_values,
    ]
    if _use_json(json_format):
        processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str | None = None) -> Any:
    """Structured logger for ``name`` (usually ``__name__``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields (request id, question mode) to every later event in this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
