"""
Data Models
===========

Core data structures for the SQL agent: conversation messages, tool call
requests, captured queries and final results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Role(Enum):
    """Author of a message in the conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCallRequest:
    """A request, emitted by the LLM, to invoke a named tool."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @property
    def query_text(self) -> Optional[str]:
        """The SQL carried in the ``input`` argument, if any."""
        value = self.arguments.get("input")
        if isinstance(value, str) and value.strip():
            return value
        return None


@dataclass(frozen=True)
class Message:
    """
    One entry of the conversation history.

    Only assistant messages carry tool calls; only tool messages carry
    the name (and correlation id) of the call they answer.
    """

    role: Role
    content: str
    tool_calls: tuple[ToolCallRequest, ...] = ()
    tool_name: Optional[str] = None
    tool_call_id: Optional[str] = None
    is_error: bool = False

    def __post_init__(self) -> None:
        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError(f"{self.role.value} messages cannot carry tool calls")
        if self.role is Role.TOOL:
            if not self.tool_name:
                raise ValueError("tool messages require a tool_name")
        elif self.tool_name is not None or self.tool_call_id is not None:
            raise ValueError(f"{self.role.value} messages cannot carry tool_name/tool_call_id")
        if self.is_error and self.role is not Role.TOOL:
            raise ValueError("only tool messages can be flagged as errors")

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: list[ToolCallRequest] | tuple[ToolCallRequest, ...] = ()
    ) -> Message:
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(
        cls,
        content: str,
        tool_name: str,
        tool_call_id: Optional[str] = None,
        is_error: bool = False,
    ) -> Message:
        return cls(
            role=Role.TOOL,
            content=content,
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            is_error=is_error,
        )

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict view used by the API and reports."""
        data: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [
                {"id": call.id, "name": call.name, "arguments": call.arguments}
                for call in self.tool_calls
            ]
        if self.role is Role.TOOL:
            data["tool_name"] = self.tool_name
            data["tool_call_id"] = self.tool_call_id
            data["is_error"] = self.is_error
        return data


@dataclass(frozen=True)
class QueryResult:
    """A SQL statement executed by the agent and the rows it returned."""

    query: str
    rows: list[Any]


@dataclass
class AgentResult:
    """Final result from the reasoning loop."""

    question: str
    queries: list[QueryResult]
    final_answer: str
    cycles: int = 0
    messages: list[Message] = field(default_factory=list)
    dropped_results: int = 0


@dataclass
class PipelineResult:
    """Final result from the direct (write, execute, answer) pipeline."""

    question: str
    query: str
    rows: list[dict[str, Any]]
    answer: str


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    stop_reason: Optional[str] = None


class VerificationStatus(Enum):
    """Status of a static query check."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class VerificationResult:
    """Result of a single static query check."""

    verifier_name: str
    status: VerificationStatus
    message: str
    details: dict = field(default_factory=dict)
