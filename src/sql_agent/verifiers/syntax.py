"""
Syntax Verifier
===============

Validates SQL by compiling it against the live database with EXPLAIN.
"""

from sql_agent.database import SQLDatabase
from sql_agent.errors import SqlExecutionError
from sql_agent.models import VerificationResult
from sql_agent.verifiers.base import Verifier


class SyntaxVerifier(Verifier):
    """
    Compiles the statement without running it.

    Unknown tables and columns fail here too, since SQLite resolves names
    at prepare time.
    """

    def __init__(self, database: SQLDatabase) -> None:
        self.database = database

    def verify(self, sql: str) -> VerificationResult:
        try:
            self.database.explain(sql)
        except SqlExecutionError as e:
            return self.failed(f"SQL error: {e.message}", error_message=e.message)
        return self.passed("SQL compiles against the database")
