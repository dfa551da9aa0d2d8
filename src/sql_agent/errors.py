"""
Errors
======

Exception hierarchy for the SQL agent.

Domain errors the LLM can react to (bad SQL, tool faults) are turned into
tool output by the registry. Everything else propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sql_agent.models import AgentResult


class SQLAgentError(Exception):
    """Base class for all SQL agent errors."""


class ConfigurationError(SQLAgentError):
    """Required configuration (credential, database path) is missing or invalid."""


class SqlExecutionError(SQLAgentError):
    """The database rejected a SQL statement."""

    def __init__(self, sql: str, message: str) -> None:
        super().__init__(message)
        self.sql = sql
        self.message = message


class StructuredOutputViolation(SQLAgentError):
    """The LLM response could not be coerced to the requested schema."""


class AgentDidNotConverge(SQLAgentError):
    """The reasoning loop exhausted its cycle budget without a final answer."""

    def __init__(self, max_cycles: int, partial_result: AgentResult | None = None) -> None:
        super().__init__(
            f"Agent did not produce a final answer within {max_cycles} cycle(s)"
        )
        self.max_cycles = max_cycles
        self.partial_result = partial_result


class ToolExecutionError(SQLAgentError):
    """A registered tool failed internally."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name
        self.message = message


class UnknownToolError(SQLAgentError):
    """A tool name was requested that is not registered."""


class EmptyHistory(SQLAgentError):
    """The message history has no messages yet."""


class LLMProviderError(SQLAgentError):
    """The LLM provider call failed (network, rate limit, server error)."""
