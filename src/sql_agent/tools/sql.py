"""
SQL Toolkit
===========

The four database tools offered to the agent: execute, describe, list and
check.
"""

import json
from typing import Any

from pydantic import BaseModel, Field

from sql_agent.database import SQLDatabase
from sql_agent.errors import ToolExecutionError
from sql_agent.llm.base import LLMInterface
from sql_agent.prompts import QUERY_CHECKER_PROMPT
from sql_agent.tools.base import Tool, ToolRegistry
from sql_agent.verifiers import (
    SafetyVerifier,
    SyntaxVerifier,
    VerificationChain,
    failure_messages,
)

QUERY_SQL = "query-sql"
INFO_SQL = "info-sql"
LIST_TABLES_SQL = "list-tables-sql"
QUERY_CHECKER = "query-checker"


class QueryInput(BaseModel):
    input: str = Field(description="A detailed and correct SQL query.")


class TableNamesInput(BaseModel):
    input: str = Field(
        description="A comma-separated list of the table names for which to return the schema."
    )


class EmptyInput(BaseModel):
    input: str = Field(default="", description="An empty string.")


class QuerySQLTool(Tool):
    name = QUERY_SQL
    description = (
        "Input to this tool is a detailed and correct SQL query, output is a result "
        "from the database. If the query is not correct, an error message will be "
        "returned. If an error is returned, rewrite the query, check the query, "
        "and try again."
    )
    args_schema = QueryInput

    def __init__(self, database: SQLDatabase) -> None:
        self.database = database

    def execute(self, query: str) -> list[dict[str, Any]]:
        """Run ``query`` and return rows; SqlExecutionError propagates."""
        return self.database.run(query)

    def _run(self, input: str) -> str:
        return json.dumps(self.execute(input), default=str)


class InfoSQLTool(Tool):
    name = INFO_SQL
    description = (
        "Input to this tool is a comma-separated list of tables, output is the "
        "schema and sample rows for those tables. Be sure that the tables actually "
        f"exist by calling {LIST_TABLES_SQL} first! "
        "Example Input: table1, table2, table3"
    )
    args_schema = TableNamesInput

    def __init__(self, database: SQLDatabase) -> None:
        self.database = database

    def _run(self, input: str) -> str:
        table_names = [name.strip() for name in input.split(",") if name.strip()]
        if not table_names:
            raise ToolExecutionError(self.name, "no table names given")
        try:
            return self.database.get_table_info(table_names)
        except ValueError as e:
            raise ToolExecutionError(self.name, str(e)) from e


class ListTablesSQLTool(Tool):
    name = LIST_TABLES_SQL
    description = (
        "Input is an empty string, output is a comma-separated list of tables "
        "in the database."
    )
    args_schema = EmptyInput

    def __init__(self, database: SQLDatabase) -> None:
        self.database = database

    def _run(self, input: str = "") -> str:
        return ", ".join(self.database.get_usable_table_names())


class QueryCheckerTool(Tool):
    """
    Reviews a query without executing it.

    Static checks run first (safety, then compilation against the live
    database). If they pass and an LLM is configured, the LLM double-checks
    the query for common mistakes and returns the final query.
    """

    name = QUERY_CHECKER
    description = (
        "Use this tool to double check if your query is correct before executing it. "
        f"Always use this tool before executing a query with {QUERY_SQL}!"
    )
    args_schema = QueryInput

    def __init__(self, database: SQLDatabase, llm: LLMInterface | None = None) -> None:
        self.database = database
        self.llm = llm
        self.verification_chain = VerificationChain(
            [SafetyVerifier(), SyntaxVerifier(database)]
        )

    def _run(self, input: str) -> str:
        passed, results = self.verification_chain.run(input)
        if not passed:
            problems = "; ".join(failure_messages(results))
            return f"The query has problems: {problems}. Rewrite the query."

        if self.llm is None:
            return input

        prompt = QUERY_CHECKER_PROMPT.format(query=input, dialect=self.database.dialect)
        return self.llm.generate(prompt).content


def build_sql_toolkit(database: SQLDatabase, llm: LLMInterface | None = None) -> ToolRegistry:
    """Registry with the four SQL tools bound to ``database``."""
    return ToolRegistry(
        [
            QuerySQLTool(database),
            InfoSQLTool(database),
            ListTablesSQLTool(database),
            QueryCheckerTool(database, llm),
        ]
    )
