"""
SQL Database
============

Thin wrapper over an embedded SQLite database: statement execution,
table listing and schema introspection for prompts and tools.
"""

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Any

from sql_agent.errors import ConfigurationError, SqlExecutionError


class SQLDatabase:
    """SQLite database reachable through SQL text."""

    dialect = "sqlite"

    def __init__(
        self,
        path: str | Path,
        read_only: bool = False,
        sample_rows_in_table_info: int = 3,
    ) -> None:
        """
        Initialize the database wrapper.

        Args:
            path: Path to the SQLite file (``:memory:`` is not supported,
                  every call opens its own connection)
            read_only: Open connections in read-only mode
            sample_rows_in_table_info: Sample rows appended per table in
                                       ``get_table_info``
        """
        self.path = Path(path)
        self.read_only = read_only
        self.sample_rows_in_table_info = sample_rows_in_table_info

    @classmethod
    def from_path(cls, path: str | Path, read_only: bool = False) -> "SQLDatabase":
        path = Path(path)
        if read_only and not path.exists():
            raise ConfigurationError(f"Database file not found: {path}")
        return cls(path, read_only=read_only)

    def _connect(self) -> sqlite3.Connection:
        if self.read_only:
            conn = sqlite3.connect(self.path.resolve().as_uri() + "?mode=ro", uri=True)
        else:
            conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        return conn

    def run(self, sql: str, parameters: tuple = ()) -> list[dict[str, Any]]:
        """
        Execute a SQL statement.

        Args:
            sql: SQL text, a single statement
            parameters: Values bound to '?' placeholders

        Returns:
            Result rows as column-name mappings (empty for statements
            that return nothing)

        Raises:
            SqlExecutionError: The database rejected the statement
        """
        try:
            with closing(self._connect()) as conn:
                cursor = conn.execute(sql, parameters)
                rows = [dict(row) for row in cursor.fetchall()]
                conn.commit()
                return rows
        except (sqlite3.Error, sqlite3.Warning) as e:
            raise SqlExecutionError(sql, str(e)) from e

    def explain(self, sql: str) -> None:
        """Compile ``sql`` without running it; raises SqlExecutionError if invalid."""
        try:
            with closing(self._connect()) as conn:
                conn.execute(f"EXPLAIN {sql}")
        except (sqlite3.Error, sqlite3.Warning) as e:
            raise SqlExecutionError(sql, str(e)) from e

    def get_usable_table_names(self) -> list[str]:
        rows = self.run(
            "SELECT name FROM sqlite_master "
            "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
            "ORDER BY name"
        )
        return [row["name"] for row in rows]

    def get_table_info(self, table_names: list[str] | None = None) -> str:
        """
        Describe tables for prompt context.

        Each table contributes its ``CREATE`` statement followed by a comment
        block with a few sample rows.

        Args:
            table_names: Tables to describe (default: all usable tables)

        Returns:
            Schema description text

        Raises:
            ValueError: A requested table does not exist
        """
        usable = self.get_usable_table_names()
        if table_names is None:
            table_names = usable
        else:
            missing = sorted(set(table_names) - set(usable))
            if missing:
                raise ValueError(f"table_names {missing} not found in database")

        sections = []
        for table in table_names:
            create = self.run("SELECT sql FROM sqlite_master WHERE name = ?", (table,))
            section = (create[0]["sql"] or "").strip() if create else ""
            if self.sample_rows_in_table_info:
                section += "\n\n" + self._sample_rows(table)
            sections.append(section)
        return "\n\n".join(sections)

    def _sample_rows(self, table: str) -> str:
        rows = self.run(
            f"SELECT * FROM {_quote_identifier(table)} LIMIT {self.sample_rows_in_table_info}"
        )
        header = f"/*\n{self.sample_rows_in_table_info} rows from {table} table:"
        if not rows:
            return f"{header}\n*/"
        columns = "\t".join(rows[0].keys())
        lines = ["\t".join(_truncate(value) for value in row.values()) for row in rows]
        return "\n".join([header, columns, *lines, "*/"])


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _truncate(value: Any, limit: int = 100) -> str:
    text = "" if value is None else str(value)
    return text if len(text) <= limit else text[:limit] + "..."
