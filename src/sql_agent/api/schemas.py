"""
API Schemas
===========

Pydantic models for API request/response validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    """Request body for the direct pipeline."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Natural language question about the database",
        examples=["How many employees are there?"],
    )


class AskResponse(BaseModel):
    """Response body for the direct pipeline."""

    question: str = Field(..., description="Original question")
    query: str = Field(..., description="Generated SQL query")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Query result rows")
    answer: str = Field(..., description="Natural language answer")
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class AgentRequest(BaseModel):
    """Request body for the tool-calling agent."""

    question: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Natural language question about the database",
        examples=["Which artist has the most albums?"],
    )
    max_cycles: int | None = Field(
        default=None,
        ge=1,
        le=50,
        description="Maximum LLM cycles (default: server setting)",
    )
    include_messages: bool = Field(
        default=False,
        description="Include the full conversation in the response",
    )


class QueryResultResponse(BaseModel):
    """One SQL query executed by the agent."""

    query: str = Field(..., description="SQL text")
    rows: list[Any] = Field(default_factory=list, description="Parsed result rows")


class MessageResponse(BaseModel):
    """One conversation message."""

    role: str
    content: str
    tool_calls: list[dict[str, Any]] | None = None
    tool_name: str | None = None
    tool_call_id: str | None = None
    is_error: bool | None = None


class AgentResponse(BaseModel):
    """Response body for the tool-calling agent."""

    question: str = Field(..., description="Original question")
    queries: list[QueryResultResponse] = Field(default_factory=list)
    final_answer: str = Field(..., description="Agent's final answer")
    cycles: int = Field(..., description="LLM cycles used")
    messages: list[MessageResponse] | None = Field(
        None,
        description="Full conversation (if requested)",
    )
    request_id: str = Field(..., description="Unique request identifier")
    processing_time_ms: float = Field(..., description="Processing time in milliseconds")


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="API version")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual component health checks",
    )


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool = Field(..., description="Whether the service is ready to handle requests")
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual readiness checks",
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    request_id: str | None = Field(None, description="Request ID if available")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
