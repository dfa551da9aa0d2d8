"""
Tool Registry
=============

Tool contract and the name-keyed registry the agent dispatches through.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from sql_agent.errors import SqlExecutionError, ToolExecutionError, UnknownToolError
from sql_agent.models import Message, ToolCallRequest
from sql_agent.observability.logging_config import get_logger

logger = get_logger(__name__)


class Tool(ABC):
    """A named capability the LLM can call."""

    name: str
    description: str
    args_schema: type[BaseModel]

    @abstractmethod
    def _run(self, **kwargs: Any) -> str:
        """Execute with validated arguments; may raise ToolExecutionError."""
        pass

    def invoke(self, arguments: dict[str, Any]) -> str:
        """
        Validate ``arguments`` against ``args_schema`` and run the tool.

        Raises:
            pydantic.ValidationError: Arguments do not fit the schema
            ToolExecutionError: The tool failed internally
            SqlExecutionError: The database rejected the statement
        """
        validated = self.args_schema.model_validate(arguments)
        return self._run(**validated.model_dump())

    def spec(self) -> dict[str, Any]:
        """Provider-neutral tool schema."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.args_schema.model_json_schema(),
        }


class ToolRegistry:
    """Fixed set of tools with unique names."""

    def __init__(self, tools: Iterable[Tool]) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(
                f"Unknown tool '{name}'. Registered tools: {', '.join(self._tools)}"
            ) from None

    def specs(self) -> list[dict[str, Any]]:
        return [tool.spec() for tool in self._tools.values()]

    def dispatch(self, call: ToolCallRequest) -> Message:
        """
        Run the requested tool and wrap its output in a tool message.

        Tool failures become error text in the message content. Only an
        unregistered tool name raises.
        """
        tool = self.get(call.name)
        try:
            content = tool.invoke(call.arguments)
            is_error = False
        except SqlExecutionError as e:
            content, is_error = f"Error: {e.message}", True
        except ToolExecutionError as e:
            content, is_error = f"Error: {e.message}", True
        except ValidationError as e:
            content, is_error = f"Error: invalid arguments for {call.name}: {e}", True

        if is_error:
            logger.warning("tool_failed", tool=call.name, call_id=call.id, error=content)
        else:
            logger.debug("tool_succeeded", tool=call.name, call_id=call.id)

        return Message.tool(
            content=content,
            tool_name=call.name,
            tool_call_id=call.id,
            is_error=is_error,
        )

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
