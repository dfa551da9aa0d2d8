"""
Base LLM Interface
==================

Abstract interface for LLM providers.
"""

from abc import ABC, abstractmethod
from typing import Sequence, TypeVar

from pydantic import BaseModel

from sql_agent.models import LLMResponse, Message

T = TypeVar("T", bound=BaseModel)


class LLMInterface(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        """
        Generate a response from the LLM.

        Args:
            prompt: The user prompt/question
            system_prompt: Optional system prompt for context

        Returns:
            LLMResponse with generated content
        """
        pass

    @abstractmethod
    def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """
        Send a conversation and let the model answer or request tools.

        Args:
            messages: Full conversation history, oldest first
            tools: Tool specs (name, description, input_schema) the model may call
            system_prompt: Optional system prompt

        Returns:
            LLMResponse whose ``tool_calls`` lists requested tool invocations
            in the order the model emitted them
        """
        pass

    @abstractmethod
    def generate_structured(
        self,
        prompt: str,
        output_schema: type[T],
        system_prompt: str | None = None,
    ) -> T:
        """
        Generate a value conforming to ``output_schema``.

        Raises:
            StructuredOutputViolation: The response does not fit the schema
        """
        pass
