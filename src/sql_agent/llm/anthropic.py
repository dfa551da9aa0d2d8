"""
Anthropic LLM
=============

LLM provider backed by the Anthropic Messages API with tool use.
"""

from typing import Any, Sequence

import anthropic
from pydantic import ValidationError

from sql_agent.config import Settings
from sql_agent.errors import ConfigurationError, LLMProviderError, StructuredOutputViolation
from sql_agent.llm.base import LLMInterface, T
from sql_agent.models import LLMResponse, Message, Role, ToolCallRequest
from sql_agent.observability.logging_config import get_logger

logger = get_logger(__name__)


class AnthropicLLM(LLMInterface):
    """Claude models through the official ``anthropic`` SDK."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "claude-3-5-sonnet-20240620",
        temperature: float = 0.0,
        max_tokens: int = 1024,
        client: anthropic.Anthropic | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            api_key: Anthropic API key; required
            model: Model name
            temperature: Sampling temperature
            max_tokens: Maximum tokens per response
            client: Preconfigured SDK client (used as-is when given)

        Raises:
            ConfigurationError: No API key was provided
        """
        if client is None and not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set")
        self.client = client or anthropic.Anthropic(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnthropicLLM":
        return cls(
            api_key=settings.require_api_key(),
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

    def _create(self, **kwargs: Any) -> Any:
        params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        params.update({key: value for key, value in kwargs.items() if value is not None})
        try:
            return self.client.messages.create(**params)
        except anthropic.APIError as e:
            logger.error("llm_request_failed", model=self.model, error=str(e))
            raise LLMProviderError(f"Anthropic API error: {e}") from e

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        response = self._create(
            system=system_prompt,
            messages=[{"role": "user", "content": prompt}],
        )
        return self._to_llm_response(response)

    def chat(
        self,
        messages: Sequence[Message],
        tools: list[dict] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        response = self._create(
            system=system_prompt,
            tools=tools or None,
            messages=to_anthropic_messages(messages),
        )
        return self._to_llm_response(response)

    def generate_structured(
        self,
        prompt: str,
        output_schema: type[T],
        system_prompt: str | None = None,
    ) -> T:
        """
        Force a single tool call whose input schema is ``output_schema``.
        """
        tool_name = output_schema.__name__
        tool = {
            "name": tool_name,
            "description": output_schema.__doc__ or f"Return a {tool_name} value.",
            "input_schema": output_schema.model_json_schema(),
        }
        response = self._create(
            system=system_prompt,
            tools=[tool],
            tool_choice={"type": "tool", "name": tool_name},
            messages=[{"role": "user", "content": prompt}],
        )

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                try:
                    return output_schema.model_validate(block.input)
                except ValidationError as e:
                    raise StructuredOutputViolation(
                        f"Response does not match {tool_name}: {e}"
                    ) from e

        raise StructuredOutputViolation(f"Model did not return a {tool_name} value")

    def _to_llm_response(self, response: Any) -> LLMResponse:
        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(id=block.id, name=block.name, arguments=dict(block.input or {}))
                )

        usage = getattr(response, "usage", None)
        tokens = (usage.input_tokens + usage.output_tokens) if usage else 0
        return LLMResponse(
            content="\n".join(text_parts),
            model=response.model,
            tokens_used=tokens,
            tool_calls=tool_calls,
            stop_reason=response.stop_reason,
        )


def to_anthropic_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """
    Convert the history to Messages API format.

    Consecutive tool messages are folded into a single user message of
    ``tool_result`` blocks, as the API expects.
    """
    converted: list[dict[str, Any]] = []
    for message in messages:
        if message.role is Role.USER:
            converted.append({"role": "user", "content": message.content})

        elif message.role is Role.ASSISTANT:
            blocks: list[dict[str, Any]] = []
            if message.content:
                blocks.append({"type": "text", "text": message.content})
            for call in message.tool_calls:
                blocks.append(
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.arguments}
                )
            converted.append({"role": "assistant", "content": blocks})

        else:
            result = {
                "type": "tool_result",
                "tool_use_id": message.tool_call_id,
                "content": message.content,
            }
            if message.is_error:
                result["is_error"] = True
            previous = converted[-1] if converted else None
            if (
                previous is not None
                and previous["role"] == "user"
                and isinstance(previous["content"], list)
            ):
                previous["content"].append(result)
            else:
                converted.append({"role": "user", "content": [result]})
    return converted
