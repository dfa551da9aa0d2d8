"""
Message History
===============

Append-only conversation log owned by one agent run.
"""

from __future__ import annotations

from typing import Iterator

from sql_agent.errors import EmptyHistory
from sql_agent.models import Message, Role, ToolCallRequest


class MessageHistory:
    """Ordered, append-only sequence of messages."""

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise TypeError(f"expected Message, got {type(message).__name__}")
        self._messages.append(message)

    def last_message(self) -> Message:
        if not self._messages:
            raise EmptyHistory("history has no messages")
        return self._messages[-1]

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def unanswered_tool_calls(self) -> list[ToolCallRequest]:
        """
        Tool call requests with no tool message answering them.

        Requests are matched by correlation id. Tool messages without an id
        answer the oldest outstanding request of the same name.
        """
        outstanding: list[ToolCallRequest] = []
        for message in self._messages:
            if message.role is Role.ASSISTANT:
                outstanding.extend(message.tool_calls)
            elif message.role is Role.TOOL:
                for index, call in enumerate(outstanding):
                    if message.tool_call_id is not None:
                        matched = call.id == message.tool_call_id
                    else:
                        matched = call.name == message.tool_name
                    if matched:
                        del outstanding[index]
                        break
        return outstanding

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)
