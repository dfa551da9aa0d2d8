"""
Question Routes
===============

Endpoints answering questions through the direct pipeline or the agent.
"""

import time
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from sql_agent.agent import SQLAgent
from sql_agent.api.schemas import (
    AgentRequest,
    AgentResponse,
    AskRequest,
    AskResponse,
    ErrorResponse,
    MessageResponse,
    QueryResultResponse,
)
from sql_agent.errors import (
    AgentDidNotConverge,
    ConfigurationError,
    LLMProviderError,
    SQLAgentError,
    SqlExecutionError,
    StructuredOutputViolation,
)
from sql_agent.models import AgentResult
from sql_agent.observability.logging_config import get_logger
from sql_agent.observability.metrics import track_agent_metrics, track_pipeline_metrics
from sql_agent.pipeline import DirectPipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Questions"])

ERROR_STATUS = {
    SqlExecutionError: 422,
    AgentDidNotConverge: 422,
    StructuredOutputViolation: 502,
    LLMProviderError: 502,
    ConfigurationError: 500,
}

ERROR_RESPONSES = {
    422: {"model": ErrorResponse, "description": "Query failed or agent did not converge"},
    502: {"model": ErrorResponse, "description": "LLM provider error"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def get_agent(request: Request) -> SQLAgent:
    """Dependency to get the configured agent from app state."""
    return request.app.state.agent


def get_pipeline(request: Request) -> DirectPipeline:
    """Dependency to get the configured pipeline from app state."""
    return request.app.state.pipeline


def get_request_id(request: Request) -> str:
    """Request ID set by the telemetry middleware, or a fresh one."""
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


def to_http_error(
    error: SQLAgentError,
    request_id: str,
    details: dict[str, Any] | None = None,
) -> HTTPException:
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(error, error_type)),
        500,
    )
    return HTTPException(
        status_code=status_code,
        detail={
            "error": type(error).__name__,
            "message": str(error),
            "request_id": request_id,
            "details": details,
        },
    )


def to_agent_response(
    result: AgentResult,
    request_id: str,
    processing_time_ms: float,
    include_messages: bool,
) -> AgentResponse:
    messages = None
    if include_messages:
        messages = [MessageResponse(**message.to_dict()) for message in result.messages]
    return AgentResponse(
        question=result.question,
        queries=[QueryResultResponse(query=q.query, rows=q.rows) for q in result.queries],
        final_answer=result.final_answer,
        cycles=result.cycles,
        messages=messages,
        request_id=request_id,
        processing_time_ms=processing_time_ms,
    )


@router.post(
    "/ask",
    response_model=AskResponse,
    responses=ERROR_RESPONSES,
    summary="Answer a question with the direct pipeline",
    description="Writes one SQL query, executes it once and phrases the answer",
)
def ask(
    body: AskRequest,
    pipeline: DirectPipeline = Depends(get_pipeline),
    request_id: str = Depends(get_request_id),
) -> AskResponse:
    start_time = time.perf_counter()

    try:
        result = pipeline.run(body.question)
    except SQLAgentError as e:
        track_pipeline_metrics(False, time.perf_counter() - start_time)
        logger.warning("ask_failed", error_type=type(e).__name__, error=str(e))
        details = {"sql": e.sql} if isinstance(e, SqlExecutionError) else None
        raise to_http_error(e, request_id, details) from e

    duration = time.perf_counter() - start_time
    track_pipeline_metrics(True, duration)

    return AskResponse(
        question=result.question,
        query=result.query,
        rows=result.rows,
        answer=result.answer,
        request_id=request_id,
        processing_time_ms=duration * 1000,
    )


@router.post(
    "/agent",
    response_model=AgentResponse,
    responses=ERROR_RESPONSES,
    summary="Answer a question with the tool-calling agent",
    description=(
        "Lets the LLM list tables, inspect schemas, check and run queries "
        "until it answers"
    ),
)
def ask_agent(
    body: AgentRequest,
    agent: SQLAgent = Depends(get_agent),
    request_id: str = Depends(get_request_id),
) -> AgentResponse:
    start_time = time.perf_counter()

    try:
        result = agent.run(body.question, max_cycles=body.max_cycles)
    except AgentDidNotConverge as e:
        duration = time.perf_counter() - start_time
        track_agent_metrics("not_converged", duration, e.partial_result)
        details = None
        if e.partial_result is not None:
            details = to_agent_response(
                e.partial_result, request_id, duration * 1000, body.include_messages
            ).model_dump(mode="json")
        raise to_http_error(e, request_id, details) from e
    except SQLAgentError as e:
        track_agent_metrics("error", time.perf_counter() - start_time)
        logger.warning("agent_failed", error_type=type(e).__name__, error=str(e))
        raise to_http_error(e, request_id) from e

    duration = time.perf_counter() - start_time
    track_agent_metrics("answered", duration, result)
    return to_agent_response(result, request_id, duration * 1000, body.include_messages)
