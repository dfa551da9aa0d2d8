"""Builders for scripted LLM turns."""

from sql_agent.llm.mock import MockLLM
from sql_agent.models import LLMResponse, ToolCallRequest


def call(name: str, sql: str = "", call_id: str = "call_1") -> ToolCallRequest:
    """Build a tool call request with an ``input`` argument."""
    return ToolCallRequest(id=call_id, name=name, arguments={"input": sql})


def turn(content: str = "", *calls: ToolCallRequest) -> LLMResponse:
    """Build a scripted assistant turn."""
    return LLMResponse(
        content=content,
        model=MockLLM.model,
        tool_calls=list(calls),
        stop_reason="tool_use" if calls else "end_turn",
    )
