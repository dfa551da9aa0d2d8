"""
LLM Module
==========

Pluggable LLM interfaces for query writing, answering and tool calling.
"""

from sql_agent.llm.anthropic import AnthropicLLM
from sql_agent.llm.base import LLMInterface
from sql_agent.llm.mock import MockLLM

__all__ = [
    "LLMInterface",
    "AnthropicLLM",
    "MockLLM",
]
