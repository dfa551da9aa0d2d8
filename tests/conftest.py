"""
Pytest Fixtures
===============

Shared fixtures for SQL agent tests.
"""

import sqlite3
from pathlib import Path

import pytest

from sql_agent.agent import SQLAgent
from sql_agent.database import SQLDatabase
from sql_agent.llm.mock import MockLLM
from sql_agent.tools.base import ToolRegistry
from sql_agent.tools.sql import build_sql_toolkit

from tests.helpers import call, turn

EMPLOYEES = [
    (1, "Adams", "Andrew", "General Manager", None),
    (2, "Edwards", "Nancy", "Sales Manager", 1),
    (3, "Peacock", "Jane", "Sales Support Agent", 2),
    (4, "Park", "Margaret", "Sales Support Agent", 2),
    (5, "Johnson", "Steve", "Sales Support Agent", 2),
    (6, "Mitchell", "Michael", "IT Manager", 1),
    (7, "King", "Robert", "IT Staff", 6),
    (8, "Callahan", "Laura", "IT Staff", 6),
]

ARTISTS = [(1, "AC/DC"), (2, "Accept"), (3, "Aerosmith")]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Create a small Chinook-like SQLite database."""
    path = tmp_path / "chinook.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE Employee (
            EmployeeId INTEGER PRIMARY KEY,
            LastName TEXT NOT NULL,
            FirstName TEXT NOT NULL,
            Title TEXT,
            ReportsTo INTEGER
        );
        CREATE TABLE Artist (
            ArtistId INTEGER PRIMARY KEY,
            Name TEXT
        );
        """
    )
    conn.executemany("INSERT INTO Employee VALUES (?, ?, ?, ?, ?)", EMPLOYEES)
    conn.executemany("INSERT INTO Artist VALUES (?, ?)", ARTISTS)
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def database(db_path: Path) -> SQLDatabase:
    """Read-only wrapper over the test database."""
    return SQLDatabase.from_path(db_path, read_only=True)


@pytest.fixture
def toolkit(database: SQLDatabase) -> ToolRegistry:
    """SQL toolkit without an LLM-backed query checker."""
    return build_sql_toolkit(database)


@pytest.fixture
def count_employees_llm() -> MockLLM:
    """LLM that lists tables, reads the schema, runs a count and answers."""
    return MockLLM(
        turns=[
            turn("Let me look at the tables.", call("list-tables-sql", "", "call_1")),
            turn("", call("info-sql", "Employee", "call_2")),
            turn(
                "",
                call("query-sql", "SELECT COUNT(*) AS EmployeeCount FROM Employee;", "call_3"),
            ),
            turn("There are 8 employees."),
        ]
    )


@pytest.fixture
def agent(count_employees_llm: MockLLM, toolkit: ToolRegistry) -> SQLAgent:
    """Agent with the scripted employee-count conversation."""
    return SQLAgent(llm=count_employees_llm, registry=toolkit, max_cycles=10)


@pytest.fixture
def looping_llm() -> MockLLM:
    """LLM that requests a tool on every turn and never answers."""
    return MockLLM(turns=[turn("", call("list-tables-sql", "", "call_loop"))])
