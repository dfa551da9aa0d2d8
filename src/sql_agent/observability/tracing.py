"""
OpenTelemetry Tracing
=====================

One span per agent run and per pipeline run, nested under the FastAPI
request span when served over HTTP.
"""

import os
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Status, StatusCode

from sql_agent import __version__
from sql_agent.models import AgentResult, PipelineResult
from sql_agent.observability.logging_config import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def setup_tracing(
    app: FastAPI,
    service_name: str = "sql-agent-api",
    otlp_endpoint: Optional[str] = None,
) -> None:
    """
    Install a tracer provider and instrument ``app``.

    Args:
        app: FastAPI application instance
        service_name: ``service.name`` resource attribute
        otlp_endpoint: Collector address (default: OTEL_EXPORTER_OTLP_ENDPOINT
                       or localhost:4317); ``disabled`` keeps spans in-process
    """
    endpoint = otlp_endpoint or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "localhost:4317")
    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: service_name,
                "service.version": __version__,
                "deployment.environment": os.getenv("ENVIRONMENT", "development"),
            }
        )
    )

    if endpoint != "disabled":
        exporter = OTLPSpanExporter(endpoint=endpoint, insecure=True)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("tracing_enabled", endpoint=endpoint)

    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app)


def get_tracer(name: str = __name__) -> trace.Tracer:
    """Tracer from the global provider (no-op until ``setup_tracing`` runs)."""
    return trace.get_tracer(name, __version__)


def record_result(span: Span, result: Any) -> None:
    if isinstance(result, AgentResult):
        span.set_attribute("agent.cycles", result.cycles)
        span.set_attribute("agent.queries", len(result.queries))
        span.set_attribute("agent.dropped_results", result.dropped_results)
    elif isinstance(result, PipelineResult):
        span.set_attribute("pipeline.query", result.query)
        span.set_attribute("pipeline.rows", len(result.rows))


def traced(operation_name: str) -> Callable[[F], F]:
    """
    Run the decorated method inside a span named ``operation_name``.

    Failures mark the span as an error and re-raise.
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with get_tracer(func.__module__).start_as_current_span(operation_name) as span:
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.set_attribute("error.type", type(e).__name__)
                    raise
                record_result(span, result)
                return result
        return wrapper  # type: ignore[return-value]
    return decorator
