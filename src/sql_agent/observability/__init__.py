"""
Observability Module
====================

Structured logging, Prometheus metrics and OpenTelemetry tracing.
"""

from sql_agent.observability.logging_config import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
