"""
Query Capture
=============

Builds the agent trace (executed queries, their rows, the final answer)
by folding over the conversation as messages are appended.
"""

import json
from enum import Enum
from typing import Any, Iterable, Optional

from sql_agent.models import AgentResult, Message, QueryResult, Role
from sql_agent.observability.logging_config import get_logger
from sql_agent.tools.sql import QUERY_CHECKER, QUERY_SQL

logger = get_logger(__name__)

# Tool calls whose ``input`` argument is SQL worth remembering
QUERY_TOOLS = (QUERY_SQL, QUERY_CHECKER)


class OrphanResultPolicy(Enum):
    """What to do with a query-sql result when no query was recorded for it."""

    DROP = "drop"
    RECORD = "record"


def parse_rows(content: str) -> list[Any]:
    """
    Interpret query-sql tool output as rows.

    A JSON array is used as-is, a JSON object becomes a one-row list, and
    anything else (invalid JSON, bare scalars) is kept as raw text under
    a ``result`` key.
    """
    try:
        parsed = json.loads(content)
    except (TypeError, ValueError):
        return [{"result": content}]
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        return [parsed]
    return [{"result": content}]


class QueryCapture:
    """
    Incremental observer of the message history.

    Query text from query-sql / query-checker requests is recorded under
    each call's id. A query-sql result is paired with the query of the call
    it answers; when its id is missing or was never requested, the most
    recently requested query is used instead. A result for a requested
    call that carried no SQL is an orphan.
    """

    def __init__(self, orphan_policy: OrphanResultPolicy = OrphanResultPolicy.DROP) -> None:
        self.orphan_policy = orphan_policy
        self.queries: list[QueryResult] = []
        self.final_answer = ""
        self.dropped_results = 0
        self._pending: dict[str, str] = {}
        self._requested: set[str] = set()
        self._latest: Optional[str] = None

    def observe(self, message: Message) -> None:
        if message.role is Role.ASSISTANT:
            if message.tool_calls:
                self._record_requests(message)
            else:
                self.final_answer = message.content
        elif message.role is Role.TOOL and message.tool_name == QUERY_SQL:
            self._capture_result(message)

    def observe_all(self, messages: Iterable[Message]) -> None:
        for message in messages:
            self.observe(message)

    def _record_requests(self, message: Message) -> None:
        for call in message.tool_calls:
            if call.name == QUERY_SQL:
                self._requested.add(call.id)
            if call.name in QUERY_TOOLS and call.query_text is not None:
                self._pending[call.id] = call.query_text
                self._latest = call.query_text

    def _capture_result(self, message: Message) -> None:
        call_id = message.tool_call_id
        if call_id is not None and call_id in self._requested:
            self._requested.discard(call_id)
            query = self._pending.pop(call_id, None)
        else:
            query = self._latest
        self._latest = None

        if query is None:
            if self.orphan_policy is OrphanResultPolicy.DROP:
                self.dropped_results += 1
                logger.warning("query_result_dropped", tool_call_id=message.tool_call_id)
                return
            query = ""

        self.queries.append(QueryResult(query=query, rows=parse_rows(message.content)))

    def result(self, question: str, cycles: int, messages: Iterable[Message]) -> AgentResult:
        return AgentResult(
            question=question,
            queries=list(self.queries),
            final_answer=self.final_answer,
            cycles=cycles,
            messages=list(messages),
            dropped_results=self.dropped_results,
        )


def capture_queries(
    messages: Iterable[Message],
    orphan_policy: OrphanResultPolicy = OrphanResultPolicy.DROP,
) -> QueryCapture:
    """Re-scan a complete history; equivalent to observing it incrementally."""
    capture = QueryCapture(orphan_policy)
    capture.observe_all(messages)
    return capture
