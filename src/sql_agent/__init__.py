"""
SQL Agent
=========

Natural-language questions answered over a SQL database by an LLM, either
through a fixed write/execute/answer pipeline or a tool-calling agent loop.
"""

__version__ = "0.1.0"

from sql_agent.models import (
    AgentResult,
    LLMResponse,
    Message,
    PipelineResult,
    QueryResult,
    Role,
    ToolCallRequest,
)
from sql_agent.errors import (
    AgentDidNotConverge,
    ConfigurationError,
    EmptyHistory,
    LLMProviderError,
    SQLAgentError,
    SqlExecutionError,
    StructuredOutputViolation,
    ToolExecutionError,
    UnknownToolError,
)
from sql_agent.agent import AgentRun, AgentState, SQLAgent
from sql_agent.capture import OrphanResultPolicy, QueryCapture, capture_queries
from sql_agent.config import Settings
from sql_agent.database import SQLDatabase
from sql_agent.history import MessageHistory
from sql_agent.llm import AnthropicLLM, LLMInterface, MockLLM
from sql_agent.pipeline import DirectPipeline, QueryOutput
from sql_agent.tools import ToolRegistry, build_sql_toolkit

__all__ = [
    # Models
    "Role",
    "Message",
    "ToolCallRequest",
    "QueryResult",
    "AgentResult",
    "PipelineResult",
    "LLMResponse",
    # Errors
    "SQLAgentError",
    "ConfigurationError",
    "SqlExecutionError",
    "StructuredOutputViolation",
    "AgentDidNotConverge",
    "ToolExecutionError",
    "UnknownToolError",
    "EmptyHistory",
    "LLMProviderError",
    # Agent
    "SQLAgent",
    "AgentRun",
    "AgentState",
    "MessageHistory",
    "QueryCapture",
    "OrphanResultPolicy",
    "capture_queries",
    # Pipeline
    "DirectPipeline",
    "QueryOutput",
    # Infrastructure
    "Settings",
    "SQLDatabase",
    "ToolRegistry",
    "build_sql_toolkit",
    # LLM
    "LLMInterface",
    "AnthropicLLM",
    "MockLLM",
]
