"""
Tools Module
============

Tool contract, registry and the SQL toolkit.
"""

from sql_agent.tools.base import Tool, ToolRegistry
from sql_agent.tools.sql import (
    INFO_SQL,
    LIST_TABLES_SQL,
    QUERY_CHECKER,
    QUERY_SQL,
    InfoSQLTool,
    ListTablesSQLTool,
    QueryCheckerTool,
    QuerySQLTool,
    build_sql_toolkit,
)

__all__ = [
    "Tool",
    "ToolRegistry",
    "QuerySQLTool",
    "InfoSQLTool",
    "ListTablesSQLTool",
    "QueryCheckerTool",
    "build_sql_toolkit",
    "QUERY_SQL",
    "INFO_SQL",
    "LIST_TABLES_SQL",
    "QUERY_CHECKER",
]
