"""
Unit Tests for SQLDatabase
==========================

Tests for execution and schema introspection.
"""

import shutil
from pathlib import Path

import pytest

from sql_agent.database import SQLDatabase
from sql_agent.errors import ConfigurationError, SqlExecutionError


class TestRun:
    """Tests for statement execution."""

    def test_rows_as_dicts(self, database: SQLDatabase) -> None:
        """Test that rows map column names to values."""
        rows = database.run("SELECT EmployeeId, LastName FROM Employee ORDER BY EmployeeId LIMIT 2")
        assert rows == [
            {"EmployeeId": 1, "LastName": "Adams"},
            {"EmployeeId": 2, "LastName": "Edwards"},
        ]

    def test_parameters(self, database: SQLDatabase) -> None:
        """Test placeholder binding."""
        rows = database.run("SELECT FirstName FROM Employee WHERE Title = ?", ("IT Manager",))
        assert rows == [{"FirstName": "Michael"}]

    def test_error(self, database: SQLDatabase) -> None:
        """Test that rejected SQL raises with the statement attached."""
        with pytest.raises(SqlExecutionError) as exc_info:
            database.run("SELECT * FROM Nope")
        assert exc_info.value.sql == "SELECT * FROM Nope"
        assert "no such table" in exc_info.value.message

    def test_multiple_statements_rejected(self, database: SQLDatabase) -> None:
        """Test that only one statement runs per call."""
        with pytest.raises(SqlExecutionError):
            database.run("SELECT 1; SELECT 2")

    def test_writable_mode(self, db_path: Path) -> None:
        """Test that writes succeed when the database is not read-only."""
        database = SQLDatabase(db_path)
        assert database.run("INSERT INTO Artist VALUES (4, 'Alanis')") == []
        assert database.run("SELECT COUNT(*) AS n FROM Artist") == [{"n": 4}]

    def test_read_only_mode(self, database: SQLDatabase) -> None:
        """Test that writes fail in read-only mode."""
        with pytest.raises(SqlExecutionError):
            database.run("INSERT INTO Artist VALUES (4, 'Alanis')")

    def test_explain(self, database: SQLDatabase) -> None:
        """Test that explain compiles without returning rows."""
        assert database.explain("SELECT * FROM Employee") is None
        with pytest.raises(SqlExecutionError):
            database.explain("SELECT * FROM Nope")


class TestSchema:
    """Tests for schema introspection."""

    def test_table_names(self, database: SQLDatabase) -> None:
        """Test that tables are listed sorted."""
        assert database.get_usable_table_names() == ["Artist", "Employee"]

    def test_table_info_all(self, database: SQLDatabase) -> None:
        """Test that every table is described by default."""
        info = database.get_table_info()
        assert info.index("CREATE TABLE Artist") < info.index("CREATE TABLE Employee")
        assert "3 rows from Artist table:" in info
        assert "ArtistId\tName" in info
        assert "1\tAC/DC" in info
        assert info.count("*/") == 2

    def test_table_info_unknown(self, database: SQLDatabase) -> None:
        """Test that unknown tables are rejected."""
        with pytest.raises(ValueError, match="not found in database"):
            database.get_table_info(["Employee", "Invoice"])

    def test_table_info_without_samples(self, db_path: Path) -> None:
        """Test that sample rows can be disabled."""
        database = SQLDatabase(db_path, sample_rows_in_table_info=0)
        info = database.get_table_info(["Artist"])
        assert info.startswith("CREATE TABLE Artist")
        assert "rows from" not in info

    def test_null_rendered_empty(self, database: SQLDatabase) -> None:
        """Test that NULL sample values render as empty cells."""
        info = database.get_table_info(["Employee"])
        assert "1\tAdams\tAndrew\tGeneral Manager\t\n" in info


class TestFromPath:
    """Tests for construction."""

    def test_missing_file_read_only(self, tmp_path: Path) -> None:
        """Test that a missing file is a configuration error."""
        with pytest.raises(ConfigurationError):
            SQLDatabase.from_path(tmp_path / "missing.db", read_only=True)

    def test_dialect(self, database: SQLDatabase) -> None:
        assert database.dialect == "sqlite"

    def test_read_only_path_with_uri_characters(self, db_path: Path, tmp_path: Path) -> None:
        """Test that '#' and '%' in the file name still open the same file read-only."""
        target = tmp_path / "my#data%20.sqlite"
        shutil.copy(db_path, target)
        database = SQLDatabase.from_path(target, read_only=True)

        assert database.run("SELECT COUNT(*) AS n FROM Employee") == [{"n": 8}]
        with pytest.raises(SqlExecutionError):
            database.run("INSERT INTO Artist VALUES (4, 'Alanis')")
        assert sorted(p.name for p in tmp_path.iterdir() if p.name.startswith("my")) == [
            "my#data%20.sqlite"
        ]
