"""
Direct Pipeline
===============

Non-agentic baseline: write one query, execute it once, phrase an answer.
"""

import json
from typing import Any

from pydantic import BaseModel, Field

from sql_agent.database import SQLDatabase
from sql_agent.llm.base import LLMInterface
from sql_agent.models import PipelineResult
from sql_agent.observability.logging_config import get_logger
from sql_agent.observability.tracing import traced
from sql_agent.prompts import ANSWER_PROMPT, QUERY_SYSTEM_PROMPT, QUERY_USER_PROMPT
from sql_agent.tools.sql import QuerySQLTool

logger = get_logger(__name__)


class QueryOutput(BaseModel):
    """Generated SQL query."""

    query: str = Field(description="Syntactically valid SQL query.")


def write_query(
    llm: LLMInterface,
    question: str,
    table_info: str,
    dialect: str,
    top_k: int,
) -> str:
    """
    Ask the LLM for a single SQL query answering ``question``.

    Raises:
        StructuredOutputViolation: The LLM did not return a QueryOutput
    """
    system_prompt = QUERY_SYSTEM_PROMPT.format(
        dialect=dialect,
        top_k=top_k,
        table_info=table_info,
    )
    output = llm.generate_structured(
        QUERY_USER_PROMPT.format(input=question),
        QueryOutput,
        system_prompt=system_prompt,
    )
    return output.query


def execute_query(tool: QuerySQLTool, query: str) -> list[dict[str, Any]]:
    """Run the query once; SqlExecutionError propagates unchanged."""
    return tool.execute(query)


def generate_answer(
    llm: LLMInterface,
    question: str,
    query: str,
    result: list[dict[str, Any]],
) -> str:
    """Phrase the answer from question, query and result."""
    prompt = ANSWER_PROMPT.format(
        question=question,
        query=query,
        result=json.dumps(result, default=str),
    )
    return llm.generate(prompt).content


class DirectPipeline:
    """Three chained stages with no feedback loop."""

    def __init__(self, llm: LLMInterface, database: SQLDatabase, top_k: int = 10) -> None:
        self.llm = llm
        self.database = database
        self.top_k = top_k
        self.query_tool = QuerySQLTool(database)

    def write_query(self, question: str) -> str:
        return write_query(
            self.llm,
            question,
            table_info=self.database.get_table_info(),
            dialect=self.database.dialect,
            top_k=self.top_k,
        )

    def execute_query(self, query: str) -> list[dict[str, Any]]:
        return execute_query(self.query_tool, query)

    def generate_answer(self, question: str, query: str, result: list[dict[str, Any]]) -> str:
        return generate_answer(self.llm, question, query, result)

    @traced("sql_agent.pipeline")
    def run(self, question: str) -> PipelineResult:
        query = self.write_query(question)
        logger.info("pipeline_query_written", query=query)

        rows = self.execute_query(query)
        logger.info("pipeline_query_executed", rows=len(rows))

        answer = self.generate_answer(question, query, rows)
        return PipelineResult(question=question, query=query, rows=rows, answer=answer)
