"""
Unit Tests for Query Capture
============================

Tests for pairing executed SQL with its results.
"""

import json

from sql_agent.capture import OrphanResultPolicy, QueryCapture, capture_queries, parse_rows
from sql_agent.models import Message

from tests.helpers import call


def conversation() -> list[Message]:
    return [
        Message.user("How many employees?"),
        Message.assistant("", [call("list-tables-sql", "", "c1")]),
        Message.tool("Employee", "list-tables-sql", "c1"),
        Message.assistant("", [call("query-checker", "SELECT COUNT(*) FROM Employee", "c2")]),
        Message.tool("SELECT COUNT(*) FROM Employee", "query-checker", "c2"),
        Message.assistant("", [call("query-sql", "SELECT COUNT(*) FROM Employee", "c3")]),
        Message.tool(json.dumps([{"COUNT(*)": 8}]), "query-sql", "c3"),
        Message.assistant("There are 8 employees."),
    ]


class TestParseRows:
    """Tests for interpreting query-sql output."""

    def test_array(self) -> None:
        """Test that JSON arrays are used as-is."""
        assert parse_rows('[{"n": 1}, {"n": 2}]') == [{"n": 1}, {"n": 2}]

    def test_object(self) -> None:
        """Test that a JSON object becomes a one-row list."""
        assert parse_rows('{"n": 1}') == [{"n": 1}]

    def test_scalar_kept_as_text(self) -> None:
        """Test that bare scalars keep their raw text."""
        assert parse_rows("5") == [{"result": "5"}]

    def test_invalid_json(self) -> None:
        """Test that non-JSON text is wrapped."""
        assert parse_rows("Error: no such table: Foo") == [{"result": "Error: no such table: Foo"}]


class TestQueryCapture:
    """Tests for QueryCapture."""

    def test_captures_only_executed_queries(self) -> None:
        """Test that checker calls do not produce captured results."""
        capture = capture_queries(conversation())
        assert len(capture.queries) == 1
        assert capture.queries[0].query == "SELECT COUNT(*) FROM Employee"
        assert capture.queries[0].rows == [{"COUNT(*)": 8}]
        assert capture.final_answer == "There are 8 employees."

    def test_incremental_equals_rescan(self) -> None:
        """Test that observing as messages arrive matches a full re-scan."""
        incremental = QueryCapture()
        for message in conversation():
            incremental.observe(message)
        rescanned = capture_queries(conversation())
        assert incremental.queries == rescanned.queries
        assert incremental.final_answer == rescanned.final_answer

    def test_correlates_by_call_id(self) -> None:
        """Test that results pair with their own call when several are pending."""
        capture = capture_queries(
            [
                Message.assistant(
                    "",
                    [call("query-sql", "SELECT 1 AS a", "x"), call("query-sql", "SELECT 2 AS b", "y")],
                ),
                Message.tool('[{"b": 2}]', "query-sql", "y"),
                Message.tool('[{"a": 1}]', "query-sql", "x"),
            ]
        )
        assert [(q.query, q.rows) for q in capture.queries] == [
            ("SELECT 2 AS b", [{"b": 2}]),
            ("SELECT 1 AS a", [{"a": 1}]),
        ]

    def test_falls_back_to_latest_query(self) -> None:
        """Test that a result without a known id uses the last recorded query."""
        capture = capture_queries(
            [
                Message.assistant("", [call("query-sql", "SELECT 5", "c1")]),
                Message.tool("5", "query-sql"),
            ]
        )
        assert len(capture.queries) == 1
        assert capture.queries[0].query == "SELECT 5"
        assert capture.queries[0].rows == [{"result": "5"}]

    def test_checked_query_is_remembered(self) -> None:
        """Test that a query-checker input serves as the query for an uncorrelated result."""
        capture = capture_queries(
            [
                Message.assistant("", [call("query-checker", "SELECT 1", "c1")]),
                Message.tool("SELECT 1", "query-checker", "c1"),
                Message.tool("[]", "query-sql"),
            ]
        )
        assert [q.query for q in capture.queries] == ["SELECT 1"]

    def test_orphan_dropped_by_default(self) -> None:
        """Test that a result with no recorded query is dropped and counted."""
        capture = capture_queries([Message.tool('[{"n": 1}]', "query-sql", "unknown")])
        assert capture.queries == []
        assert capture.dropped_results == 1

    def test_orphan_recorded_with_policy(self) -> None:
        """Test that the record policy keeps orphans with empty query text."""
        capture = capture_queries(
            [Message.tool('[{"n": 1}]', "query-sql", "unknown")],
            orphan_policy=OrphanResultPolicy.RECORD,
        )
        assert len(capture.queries) == 1
        assert capture.queries[0].query == ""
        assert capture.queries[0].rows == [{"n": 1}]

    def test_latest_query_consumed_once(self) -> None:
        """Test that one recorded query does not pair with two results."""
        capture = capture_queries(
            [
                Message.assistant("", [call("query-sql", "SELECT 1", "c1")]),
                Message.tool("[]", "query-sql", "c1"),
                Message.tool("[]", "query-sql"),
            ]
        )
        assert len(capture.queries) == 1
        assert capture.dropped_results == 1

    def test_requested_call_without_sql_is_orphan(self) -> None:
        """Test that a blank query-sql call does not borrow a sibling call's query."""
        capture = capture_queries(
            [
                Message.assistant(
                    "", [call("query-sql", " ", "a"), call("query-sql", "SELECT 2 AS x", "b")]
                ),
                Message.tool("Error: empty", "query-sql", "a", is_error=True),
                Message.tool('[{"x": 2}]', "query-sql", "b"),
            ]
        )
        assert [(q.query, q.rows) for q in capture.queries] == [("SELECT 2 AS x", [{"x": 2}])]
        assert capture.dropped_results == 1

    def test_error_results_are_captured(self) -> None:
        """Test that a failed execution is kept with its error text."""
        capture = capture_queries(
            [
                Message.assistant("", [call("query-sql", "SELECT * FROM Nope", "c1")]),
                Message.tool("Error: no such table: Nope", "query-sql", "c1", is_error=True),
            ]
        )
        assert capture.queries[0].rows == [{"result": "Error: no such table: Nope"}]

    def test_last_answer_wins(self) -> None:
        """Test that the final answer is the last tool-free assistant message."""
        capture = capture_queries(
            [Message.assistant("first"), Message.user("more"), Message.assistant("second")]
        )
        assert capture.final_answer == "second"

    def test_result_snapshot(self) -> None:
        """Test assembling an AgentResult."""
        messages = conversation()
        result = capture_queries(messages).result("How many employees?", 4, messages)
        assert result.question == "How many employees?"
        assert result.cycles == 4
        assert result.messages == messages
        assert result.dropped_results == 0
