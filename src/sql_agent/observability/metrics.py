"""
Prometheus Metrics
==================

Agent, pipeline and HTTP metrics for monitoring.
"""

import time
from collections import Counter as TallyCounter
from typing import Callable

from fastapi import FastAPI, Request, Response
from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
)

from sql_agent import __version__
from sql_agent.models import AgentResult, Message, Role

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "sql_agent",
    "SQL agent application information",
    registry=REGISTRY,
)

# Agent loop metrics
AGENT_RUNS_TOTAL = Counter(
    "sql_agent_runs_total",
    "Total number of agent runs",
    ["status"],  # answered, not_converged, error
    registry=REGISTRY,
)

AGENT_CYCLES = Histogram(
    "sql_agent_cycles",
    "LLM cycles per agent run",
    buckets=[1, 2, 3, 5, 8, 13, 21],
    registry=REGISTRY,
)

AGENT_DURATION = Histogram(
    "sql_agent_run_duration_seconds",
    "Agent run duration in seconds",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
    registry=REGISTRY,
)

TOOL_CALLS_TOTAL = Counter(
    "sql_agent_tool_calls_total",
    "Tool invocations by tool and outcome",
    ["tool", "outcome"],  # ok, error
    registry=REGISTRY,
)

QUERIES_CAPTURED_TOTAL = Counter(
    "sql_agent_queries_captured_total",
    "SQL queries captured in agent traces",
    registry=REGISTRY,
)

# Direct pipeline metrics
PIPELINE_RUNS_TOTAL = Counter(
    "sql_agent_pipeline_runs_total",
    "Total number of direct pipeline runs",
    ["status"],  # success, failure
    registry=REGISTRY,
)

PIPELINE_DURATION = Histogram(
    "sql_agent_pipeline_duration_seconds",
    "Direct pipeline duration in seconds",
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
    registry=REGISTRY,
)

# HTTP metrics
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

ACTIVE_QUESTIONS = Gauge(
    "sql_agent_active_questions",
    "Number of questions currently being processed",
    registry=REGISTRY,
)

QUESTION_ENDPOINTS = {"/api/v1/ask", "/api/v1/agent"}


def setup_metrics(app: FastAPI, environment: str = "development") -> None:
    """
    Set up Prometheus metrics for the FastAPI application.

    Args:
        app: FastAPI application instance
        environment: Deployment environment reported in the info metric
    """
    APP_INFO.info({
        "version": __version__,
        "environment": environment,
    })

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next: Callable) -> Response:
        """Middleware to track HTTP metrics."""
        start_time = time.perf_counter()

        is_question = request.url.path in QUESTION_ENDPOINTS
        if is_question:
            ACTIVE_QUESTIONS.inc()

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            HTTP_REQUESTS_TOTAL.labels(
                method=request.method,
                endpoint=request.url.path,
                status=response.status_code,
            ).inc()

            HTTP_REQUEST_DURATION.labels(
                method=request.method,
                endpoint=request.url.path,
            ).observe(duration)

            return response
        finally:
            if is_question:
                ACTIVE_QUESTIONS.dec()


def count_tool_outcomes(messages: list[Message]) -> TallyCounter:
    """Tally tool messages by (tool name, outcome)."""
    return TallyCounter(
        (message.tool_name, "error" if message.is_error else "ok")
        for message in messages
        if message.role is Role.TOOL
    )


def track_agent_metrics(
    status: str,
    duration_seconds: float,
    result: AgentResult | None = None,
) -> None:
    """
    Track metrics for a finished agent run.

    Args:
        status: answered, not_converged or error
        duration_seconds: Total processing time
        result: Final or partial result, when one exists
    """
    AGENT_RUNS_TOTAL.labels(status=status).inc()
    AGENT_DURATION.observe(duration_seconds)

    if result is None:
        return

    AGENT_CYCLES.observe(result.cycles)
    QUERIES_CAPTURED_TOTAL.inc(len(result.queries))
    for (tool, outcome), count in count_tool_outcomes(result.messages).items():
        TOOL_CALLS_TOTAL.labels(tool=tool, outcome=outcome).inc(count)


def track_pipeline_metrics(success: bool, duration_seconds: float) -> None:
    """Track metrics for a finished direct pipeline run."""
    PIPELINE_RUNS_TOTAL.labels(status="success" if success else "failure").inc()
    PIPELINE_DURATION.observe(duration_seconds)


async def metrics_endpoint(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )
