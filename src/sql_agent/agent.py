"""
SQL Agent
=========

Tool-calling reasoning loop: the LLM inspects the database through tools
until it answers without requesting another tool.
"""

from enum import Enum
from typing import Iterator

from sql_agent.capture import OrphanResultPolicy, QueryCapture
from sql_agent.errors import AgentDidNotConverge
from sql_agent.history import MessageHistory
from sql_agent.llm.base import LLMInterface
from sql_agent.models import AgentResult, Message, Role
from sql_agent.observability.logging_config import get_logger
from sql_agent.observability.tracing import traced
from sql_agent.prompts import AGENT_SYSTEM_PROMPT, format_tool_list
from sql_agent.tools.base import ToolRegistry

logger = get_logger(__name__)


class AgentState(Enum):
    """States of one agent run."""

    AWAITING_LLM = "awaiting_llm"
    HANDLING_TOOL_CALLS = "handling_tool_calls"
    TERMINAL = "terminal"
    FAILED = "failed"


def next_state(message: Message) -> AgentState:
    """Transition taken after an assistant message is appended."""
    if message.role is not Role.ASSISTANT:
        raise ValueError(f"transitions are driven by assistant messages, got {message.role.value}")
    return AgentState.HANDLING_TOOL_CALLS if message.has_tool_calls else AgentState.TERMINAL


class AgentRun:
    """
    State of a single question: history, capture and cycle count.

    Each call to ``advance`` performs one transition and yields the messages
    it appended.
    """

    def __init__(
        self,
        question: str,
        llm: LLMInterface,
        registry: ToolRegistry,
        system_prompt: str,
        max_cycles: int,
        orphan_policy: OrphanResultPolicy = OrphanResultPolicy.DROP,
    ) -> None:
        self.question = question
        self.llm = llm
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_cycles = max_cycles
        self.history = MessageHistory()
        self.capture = QueryCapture(orphan_policy)
        self.state = AgentState.AWAITING_LLM
        self.cycles = 0
        self._append(Message.user(question))

    @property
    def done(self) -> bool:
        return self.state in (AgentState.TERMINAL, AgentState.FAILED)

    def _append(self, message: Message) -> Message:
        self.history.append(message)
        self.capture.observe(message)
        return message

    def advance(self) -> Iterator[Message]:
        if self.state is AgentState.AWAITING_LLM:
            yield from self._request_llm()
        elif self.state is AgentState.HANDLING_TOOL_CALLS:
            yield from self._handle_tool_calls()

    def _request_llm(self) -> Iterator[Message]:
        if self.cycles >= self.max_cycles:
            self.state = AgentState.FAILED
            logger.warning("agent_did_not_converge", max_cycles=self.max_cycles)
            raise AgentDidNotConverge(self.max_cycles, partial_result=self.result())

        unanswered = self.history.unanswered_tool_calls()
        if unanswered:
            self.state = AgentState.FAILED
            raise RuntimeError(
                f"cannot request the LLM with unanswered tool calls: {[c.id for c in unanswered]}"
            )

        self.cycles += 1
        logger.debug("agent_cycle", cycle=self.cycles, messages=len(self.history))
        try:
            response = self.llm.chat(
                self.history.messages,
                tools=self.registry.specs(),
                system_prompt=self.system_prompt,
            )
        except Exception:
            self.state = AgentState.FAILED
            raise

        message = self._append(Message.assistant(response.content, response.tool_calls))
        self.state = next_state(message)
        if message.has_tool_calls:
            logger.info(
                "agent_requested_tools",
                cycle=self.cycles,
                tools=[call.name for call in message.tool_calls],
            )
        yield message

    def _handle_tool_calls(self) -> Iterator[Message]:
        request = self.history.last_message()
        for call in request.tool_calls:
            try:
                tool_message = self.registry.dispatch(call)
            except Exception:
                self.state = AgentState.FAILED
                raise
            yield self._append(tool_message)
        self.state = AgentState.AWAITING_LLM

    def result(self) -> AgentResult:
        return self.capture.result(self.question, self.cycles, self.history.messages)


class SQLAgent:
    """
    Agent that answers questions by calling SQL tools.

    The agent holds configuration only; every question gets its own
    ``AgentRun``, so one agent can serve concurrent questions.
    """

    def __init__(
        self,
        llm: LLMInterface,
        registry: ToolRegistry,
        dialect: str = "SQLite",
        top_k: int = 5,
        max_cycles: int = 15,
        orphan_policy: OrphanResultPolicy = OrphanResultPolicy.DROP,
    ) -> None:
        """
        Initialize the agent.

        Args:
            llm: Tool-calling LLM
            registry: Tools the LLM may call
            dialect: SQL dialect named in the system prompt
            top_k: Row limit hint for the system prompt
            max_cycles: Maximum LLM requests per question
            orphan_policy: Handling of query results with no recorded query
        """
        if max_cycles < 1:
            raise ValueError("max_cycles must be at least 1")
        self.llm = llm
        self.registry = registry
        self.dialect = dialect
        self.top_k = top_k
        self.max_cycles = max_cycles
        self.orphan_policy = orphan_policy

    @property
    def system_prompt(self) -> str:
        return AGENT_SYSTEM_PROMPT.format(
            dialect=self.dialect,
            top_k=self.top_k,
            tools=format_tool_list(self.registry.specs()),
        )

    def start(self, question: str, max_cycles: int | None = None) -> AgentRun:
        if max_cycles is not None and max_cycles < 1:
            raise ValueError("max_cycles must be at least 1")
        return AgentRun(
            question=question,
            llm=self.llm,
            registry=self.registry,
            system_prompt=self.system_prompt,
            max_cycles=self.max_cycles if max_cycles is None else max_cycles,
            orphan_policy=self.orphan_policy,
        )

    def stream(self, question: str, max_cycles: int | None = None) -> Iterator[Message]:
        """Yield every message as it is appended, the user message first."""
        run = self.start(question, max_cycles)
        yield run.history.last_message()
        while not run.done:
            yield from run.advance()

    @traced("sql_agent.run")
    def run(self, question: str, max_cycles: int | None = None) -> AgentResult:
        """
        Answer ``question`` with the tool-calling loop.

        Returns:
            AgentResult with captured queries and the final answer

        Raises:
            AgentDidNotConverge: The cycle budget ran out; carries the partial result
        """
        agent_run = self.start(question, max_cycles)
        while not agent_run.done:
            for _ in agent_run.advance():
                pass

        result = agent_run.result()
        logger.info(
            "agent_answered",
            cycles=result.cycles,
            queries=len(result.queries),
            dropped_results=result.dropped_results,
        )
        return result
