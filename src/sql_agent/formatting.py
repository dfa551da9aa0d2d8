"""
Report Formatting
=================

Markdown rendering of agent traces and pipeline results.
"""

import json

from sql_agent.models import AgentResult, PipelineResult

NOT_TABULAR_PREFIXES = ("Error", "No tabular", "Data is not")


def format_json_as_markdown_table(json_string: str) -> str:
    """
    Render a JSON array of objects as a Markdown table.

    Columns come from the first object; missing and null values render
    as empty cells.
    """
    try:
        data = json.loads(json_string)
    except (TypeError, ValueError) as e:
        return f"Error formatting data as table: {e}"

    if not isinstance(data, list) or not data:
        return "No tabular data available"

    first_row = data[0]
    if not isinstance(first_row, dict):
        return "Data is not in tabular format"

    headers = list(first_row.keys())
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join("---" for _ in headers) + " |",
    ]
    for row in data:
        row = row if isinstance(row, dict) else {}
        values = ["" if row.get(header) is None else _cell(row.get(header)) for header in headers]
        lines.append("| " + " | ".join(values) + " |")
    return "\n".join(lines)


def _cell(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_table(formatted: str) -> bool:
    return "|" in formatted and not formatted.startswith(NOT_TABULAR_PREFIXES)


def render_agent_report(result: AgentResult) -> str:
    """Markdown summary of the queries the agent ran and its answer."""
    lines = ["# 📊 SQL Agent Analysis Summary"]

    if result.queries:
        lines.append("\n## 🔍 SQL Queries Executed\n")
        for index, query_result in enumerate(result.queries, start=1):
            lines.extend([f"### Query {index}:", "```sql", query_result.query, "```\n"])

        lines.append("## 📋 Query Results\n")
        for index, query_result in enumerate(result.queries, start=1):
            lines.append(f"### Result {index}:")
            result_json = json.dumps(query_result.rows, default=str)
            table = format_json_as_markdown_table(result_json)
            if is_table(table):
                lines.extend([table, "\n**Raw JSON:**", "```json", result_json, "```\n"])
            else:
                lines.extend(["```", result_json, "```\n"])

    if result.final_answer:
        lines.append("## 🤖 Agent Response\n")
        lines.append(result.final_answer)

    lines.append("\n" + "=" * 80)
    return "\n".join(lines)


def render_pipeline_report(result: PipelineResult) -> str:
    """Question, generated SQL, rows and answer of a pipeline run."""
    return "\n".join(
        [
            f"🤔 Question: {result.question}\n",
            "📝 Generated SQL Query:",
            "```sql",
            result.query,
            "```\n",
            "📊 Query Results:",
            json.dumps(result.rows, indent=2, default=str),
            "\n💬 Answer:",
            result.answer,
        ]
    )
