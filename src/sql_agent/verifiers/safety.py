"""
Safety Verifier
===============

Keeps the agent to read-only queries.
"""

import re

from sql_agent.models import VerificationResult
from sql_agent.verifiers.base import Verifier

READ_ONLY_STATEMENTS = ("SELECT", "WITH")

WRITE_KEYWORDS = (
    "INSERT",
    "UPDATE",
    "DELETE",
    "DROP",
    "ALTER",
    "CREATE",
    "TRUNCATE",
    "ATTACH",
    "DETACH",
    "PRAGMA",
    "VACUUM",
    "REINDEX",
)

_LEADING_COMMENTS = re.compile(r"\A(?:\s*(?:--[^\n]*|/\*.*?\*/))*\s*", re.DOTALL)
_STRING_LITERAL = re.compile(r"'(?:[^']|'')*'")
_WRITE_KEYWORD = re.compile(r"\b(" + "|".join(WRITE_KEYWORDS) + r")\b", re.IGNORECASE)
_REPLACE_INTO = re.compile(r"\bREPLACE\s+INTO\b", re.IGNORECASE)
_TRAILING_COMMENT = re.compile(r";\s*(--|/\*)")


class SafetyVerifier(Verifier):
    """
    Flags anything but a single SELECT/WITH statement.

    String literals are blanked before scanning, so ``WHERE Title = 'DROP'``
    is not a violation. Leading comments are ignored.
    """

    def verify(self, sql: str) -> VerificationResult:
        code = _STRING_LITERAL.sub("''", _LEADING_COMMENTS.sub("", sql, count=1))
        violations = []

        found = {match.upper() for match in _WRITE_KEYWORD.findall(code)}
        violations.extend(f"{kw} statement not allowed" for kw in WRITE_KEYWORDS if kw in found)
        if _REPLACE_INTO.search(code):
            violations.append("REPLACE statement not allowed")

        if _TRAILING_COMMENT.search(code):
            violations.append("SQL comment after statement (potential injection)")
        elif ";" in code.strip().rstrip(";"):
            violations.append("multiple statements")

        words = code.split(None, 1)
        if not violations and (not words or words[0].upper() not in READ_ONLY_STATEMENTS):
            violations.append("only SELECT or WITH queries are allowed")

        if violations:
            return self.failed(
                f"Safety check failed: {'; '.join(violations)}",
                violations=violations,
            )
        return self.passed("Read-only query")
