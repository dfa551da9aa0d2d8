"""
Mock LLM
========

Scripted LLM implementation for testing and offline demonstration.
"""

from typing import Any, Sequence

from pydantic import ValidationError

from sql_agent.errors import StructuredOutputViolation
from sql_agent.llm.base import LLMInterface, T
from sql_agent.models import LLMResponse, Message


class MockLLM(LLMInterface):
    """
    Mock LLM for demonstration and testing purposes.

    In production, replace with AnthropicLLM or another provider.
    """

    model = "mock-llm-v1"

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        turns: list[LLMResponse] | None = None,
        structured: list[dict[str, Any]] | None = None,
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to list of text answers
                       for ``generate``. Each answer is returned in sequence.
            turns: Assistant turns returned by ``chat``, in sequence
            structured: Raw values validated against the requested schema
                        by ``generate_structured``, in sequence

        Every sequence stays on its last entry once exhausted.
        """
        self.responses = responses or {}
        self.turns = turns or []
        self.structured = structured or []
        self.call_counts: dict[str, int] = {}
        self.prompts: list[str] = []
        self.chat_calls: list[dict[str, Any]] = []
        self.structured_prompts: list[str] = []

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        """Return the next canned answer whose key appears in the prompt."""
        self.prompts.append(prompt)
        for key, answers in self.responses.items():
            if key.lower() in prompt.lower():
                content = answers[self._next_index(key, len(answers))]
                return LLMResponse(content=content, model=self.model)

        # Default fallback
        return LLMResponse(content="I don't know.", model=self.model)

    def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        self.chat_calls.append(
            {"messages": list(messages), "tools": tools, "system_prompt": system_prompt}
        )
        if not self.turns:
            return LLMResponse(content="I don't know.", model=self.model, stop_reason="end_turn")
        return self.turns[self._next_index("__chat__", len(self.turns))]

    def generate_structured(
        self,
        prompt: str,
        output_schema: type[T],
        system_prompt: str | None = None,
    ) -> T:
        self.structured_prompts.append(prompt)
        if not self.structured:
            raise StructuredOutputViolation("no structured output scripted")
        raw = self.structured[self._next_index("__structured__", len(self.structured))]
        try:
            return output_schema.model_validate(raw)
        except ValidationError as e:
            raise StructuredOutputViolation(
                f"Response does not match {output_schema.__name__}: {e}"
            ) from e

    def _next_index(self, key: str, length: int) -> int:
        count = self.call_counts.get(key, 0)
        self.call_counts[key] = count + 1
        return min(count, length - 1)

    def reset(self) -> None:
        """Reset call counts and recorded calls for fresh test runs."""
        self.call_counts = {}
        self.prompts = []
        self.chat_calls = []
        self.structured_prompts = []
