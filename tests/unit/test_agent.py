"""
Unit Tests for SQLAgent
=======================

Tests for the tool-calling reasoning loop.
"""

import pytest

from sql_agent.agent import AgentState, SQLAgent, next_state
from sql_agent.errors import AgentDidNotConverge, UnknownToolError
from sql_agent.llm.mock import MockLLM
from sql_agent.models import Message, Role
from sql_agent.tools.base import ToolRegistry

from tests.helpers import call, turn


class TestAgentBasic:
    """Basic agent functionality tests."""

    def test_agent_creation(self, count_employees_llm: MockLLM, toolkit: ToolRegistry) -> None:
        """Test that agent can be created with default settings."""
        agent = SQLAgent(llm=count_employees_llm, registry=toolkit)
        assert agent.max_cycles == 15
        assert agent.top_k == 5
        assert agent.dialect == "SQLite"

    def test_invalid_max_cycles(self, count_employees_llm: MockLLM, toolkit: ToolRegistry) -> None:
        """Test that a cycle budget below one is rejected."""
        with pytest.raises(ValueError):
            SQLAgent(llm=count_employees_llm, registry=toolkit, max_cycles=0)

    def test_answers_question(self, agent: SQLAgent) -> None:
        """Test that the scripted conversation reaches a final answer."""
        result = agent.run("How many Employees are there?")
        assert result.final_answer == "There are 8 employees."
        assert result.cycles == 4
        assert result.question == "How many Employees are there?"

    def test_only_executed_sql_is_captured(self, agent: SQLAgent) -> None:
        """Test that schema lookups are not captured as queries."""
        result = agent.run("How many Employees are there?")
        assert len(result.queries) == 1
        assert result.queries[0].query == "SELECT COUNT(*) AS EmployeeCount FROM Employee;"
        assert result.queries[0].rows == [{"EmployeeCount": 8}]

    def test_history_shape(self, agent: SQLAgent) -> None:
        """Test that each tool call is followed by its result."""
        result = agent.run("How many Employees are there?")
        roles = [m.role for m in result.messages]
        assert roles == [
            Role.USER,
            Role.ASSISTANT, Role.TOOL,
            Role.ASSISTANT, Role.TOOL,
            Role.ASSISTANT, Role.TOOL,
            Role.ASSISTANT,
        ]
        tool_messages = [m for m in result.messages if m.role is Role.TOOL]
        assert [m.tool_name for m in tool_messages] == ["list-tables-sql", "info-sql", "query-sql"]
        assert [m.tool_call_id for m in tool_messages] == ["call_1", "call_2", "call_3"]
        assert tool_messages[0].content == "Artist, Employee"

    def test_system_prompt_describes_dialect_and_tools(self, agent: SQLAgent) -> None:
        """Test that the system prompt carries dialect, row limit and tools."""
        agent.run("How many Employees are there?")
        prompt = agent.llm.chat_calls[0]["system_prompt"]
        assert "SQLite" in prompt
        assert "at most 5 results" in prompt
        for name in ("query-sql", "info-sql", "list-tables-sql", "query-checker"):
            assert name in prompt

    def test_full_history_sent_each_cycle(self, agent: SQLAgent) -> None:
        """Test that every LLM request receives the whole conversation."""
        agent.run("How many Employees are there?")
        sizes = [len(c["messages"]) for c in agent.llm.chat_calls]
        assert sizes == [1, 3, 5, 7]

    def test_tool_specs_sent(self, agent: SQLAgent) -> None:
        """Test that tool schemas accompany each request."""
        agent.run("How many Employees are there?")
        tools = agent.llm.chat_calls[0]["tools"]
        assert {t["name"] for t in tools} == {
            "query-sql", "info-sql", "list-tables-sql", "query-checker",
        }
        assert all("input_schema" in t for t in tools)


class TestAgentStateMachine:
    """Tests for explicit state transitions."""

    def test_next_state(self) -> None:
        """Test transitions driven by assistant messages."""
        assert next_state(Message.assistant("done")) is AgentState.TERMINAL
        assert (
            next_state(Message.assistant("", [call("query-sql", "SELECT 1")]))
            is AgentState.HANDLING_TOOL_CALLS
        )

    def test_next_state_rejects_other_roles(self) -> None:
        """Test that only assistant messages drive transitions."""
        with pytest.raises(ValueError):
            next_state(Message.user("hi"))

    def test_run_steps_through_states(self, agent: SQLAgent) -> None:
        """Test that advance alternates between LLM and tool handling."""
        run = agent.start("How many Employees are there?")
        states = [run.state]
        while not run.done:
            list(run.advance())
            states.append(run.state)
        assert states == [
            AgentState.AWAITING_LLM,
            AgentState.HANDLING_TOOL_CALLS, AgentState.AWAITING_LLM,
            AgentState.HANDLING_TOOL_CALLS, AgentState.AWAITING_LLM,
            AgentState.HANDLING_TOOL_CALLS, AgentState.AWAITING_LLM,
            AgentState.TERMINAL,
        ]

    def test_no_orphaned_tool_calls(self, agent: SQLAgent) -> None:
        """Test that no request is pending whenever the LLM is called."""
        run = agent.start("How many Employees are there?")
        while not run.done:
            if run.state is AgentState.AWAITING_LLM:
                assert run.history.unanswered_tool_calls() == []
            list(run.advance())
        assert run.history.unanswered_tool_calls() == []


class TestAgentCycleBound:
    """Tests for the cycle budget."""

    def test_fails_after_exact_bound(self, looping_llm: MockLLM, toolkit: ToolRegistry) -> None:
        """Test that a never-ending tool loop stops after max_cycles requests."""
        agent = SQLAgent(llm=looping_llm, registry=toolkit, max_cycles=3)
        with pytest.raises(AgentDidNotConverge) as exc_info:
            agent.run("Loop forever")

        assert len(looping_llm.chat_calls) == 3
        assert exc_info.value.max_cycles == 3

    def test_partial_result_attached(self, looping_llm: MockLLM, toolkit: ToolRegistry) -> None:
        """Test that the partial trace is surfaced with the failure."""
        agent = SQLAgent(llm=looping_llm, registry=toolkit, max_cycles=2)
        with pytest.raises(AgentDidNotConverge) as exc_info:
            agent.run("Loop forever")

        partial = exc_info.value.partial_result
        assert partial is not None
        assert partial.cycles == 2
        assert partial.final_answer == ""
        # Last turn's tool calls are still answered
        assert partial.messages[-1].role is Role.TOOL

    def test_per_run_override(self, looping_llm: MockLLM, toolkit: ToolRegistry) -> None:
        """Test that max_cycles can be overridden per question."""
        agent = SQLAgent(llm=looping_llm, registry=toolkit, max_cycles=10)
        with pytest.raises(AgentDidNotConverge):
            agent.run("Loop forever", max_cycles=1)
        assert len(looping_llm.chat_calls) == 1

    def test_answer_on_last_cycle_succeeds(self, toolkit: ToolRegistry) -> None:
        """Test that answering on the final allowed cycle is not a failure."""
        llm = MockLLM(turns=[turn("", call("list-tables-sql")), turn("Done.")])
        agent = SQLAgent(llm=llm, registry=toolkit, max_cycles=2)
        assert agent.run("q").final_answer == "Done."


class TestAgentToolErrors:
    """Tests for tool failures inside the loop."""

    def test_sql_error_fed_back(self, toolkit: ToolRegistry) -> None:
        """Test that bad SQL becomes tool output and the model can retry."""
        llm = MockLLM(
            turns=[
                turn("", call("query-sql", "SELECT COUNT(*) FROM Employees", "call_1")),
                turn("", call("query-sql", "SELECT COUNT(*) AS n FROM Employee", "call_2")),
                turn("8 employees."),
            ]
        )
        agent = SQLAgent(llm=llm, registry=toolkit)
        result = agent.run("How many employees?")

        error_message = result.messages[2]
        assert error_message.is_error is True
        assert "no such table" in error_message.content
        assert result.final_answer == "8 employees."
        assert len(result.queries) == 2
        assert result.queries[1].rows == [{"n": 8}]

    def test_unknown_tool_propagates(self, toolkit: ToolRegistry) -> None:
        """Test that an unregistered tool name fails fast."""
        llm = MockLLM(turns=[turn("", call("drop-everything"))])
        agent = SQLAgent(llm=llm, registry=toolkit)
        with pytest.raises(UnknownToolError):
            agent.run("q")

    def test_multiple_calls_in_one_turn(self, toolkit: ToolRegistry) -> None:
        """Test that calls run and are answered in request order."""
        llm = MockLLM(
            turns=[
                turn(
                    "",
                    call("query-sql", "SELECT COUNT(*) AS n FROM Employee", "a"),
                    call("query-sql", "SELECT COUNT(*) AS n FROM Artist", "b"),
                ),
                turn("8 employees and 3 artists."),
            ]
        )
        agent = SQLAgent(llm=llm, registry=toolkit)
        result = agent.run("Counts?")

        assert [m.tool_call_id for m in result.messages if m.role is Role.TOOL] == ["a", "b"]
        assert [q.query for q in result.queries] == [
            "SELECT COUNT(*) AS n FROM Employee",
            "SELECT COUNT(*) AS n FROM Artist",
        ]
        assert [q.rows for q in result.queries] == [[{"n": 8}], [{"n": 3}]]


class TestAgentStreaming:
    """Tests for streaming and run isolation."""

    def test_stream_yields_every_message(self, agent: SQLAgent) -> None:
        """Test that stream yields the user message first and the answer last."""
        messages = list(agent.stream("How many Employees are there?"))
        assert messages[0] == Message.user("How many Employees are there?")
        assert messages[-1].content == "There are 8 employees."
        assert len(messages) == 8

    def test_runs_are_independent(self, agent: SQLAgent) -> None:
        """Test that each question gets its own history and capture."""
        first = agent.start("first")
        second = agent.start("second")
        assert first.history is not second.history
        assert first.capture is not second.capture
        assert first.history.last_message().content == "first"
        assert second.history.last_message().content == "second"
