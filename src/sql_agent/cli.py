"""
Command Line Interface
======================

Ask a question about the database from the shell.
"""

import argparse
import subprocess
import sys

from sql_agent.agent import SQLAgent
from sql_agent.config import Settings
from sql_agent.database import SQLDatabase
from sql_agent.errors import AgentDidNotConverge, SQLAgentError
from sql_agent.formatting import render_agent_report, render_pipeline_report
from sql_agent.llm.anthropic import AnthropicLLM
from sql_agent.llm.base import LLMInterface
from sql_agent.observability.logging_config import get_logger, setup_logging
from sql_agent.pipeline import DirectPipeline
from sql_agent.tools.sql import build_sql_toolkit

logger = get_logger(__name__)

USAGE = 'Usage: sql-agent "Your question here"\nExample: sql-agent "How many employees are there?"'

CLIPBOARD_COMMANDS = {
    "darwin": ["pbcopy"],
    "linux": ["xclip", "-selection", "clipboard"],
    "win32": ["clip"],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sql-agent",
        description="Answer natural-language questions about a SQLite database.",
    )
    parser.add_argument("question", nargs="?", help="Natural language question")
    parser.add_argument("--db", help="Path to the SQLite database (default: SQL_AGENT_DATABASE)")
    parser.add_argument(
        "--mode",
        choices=["pipeline", "agent", "both"],
        default="both",
        help="Direct pipeline, tool-calling agent, or both (default)",
    )
    parser.add_argument("--max-cycles", type=int, help="Agent cycle budget")
    parser.add_argument("--copy", action="store_true", help="Copy the generated SQL to the clipboard")
    parser.add_argument("--log-level", help="Log level (default: LOG_LEVEL or INFO)")
    return parser


def copy_to_clipboard(text: str) -> bool:
    """Copy ``text`` with the platform clipboard command; False if unavailable."""
    command = CLIPBOARD_COMMANDS.get(sys.platform)
    if command is None:
        logger.warning("clipboard_unsupported", platform=sys.platform)
        return False
    try:
        subprocess.run(command, input=text, text=True, check=True)
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("clipboard_copy_failed", error=str(e))
        return False
    return True


def run_pipeline(
    llm: LLMInterface,
    database: SQLDatabase,
    settings: Settings,
    question: str,
    copy: bool,
) -> None:
    pipeline = DirectPipeline(llm, database, top_k=settings.pipeline_top_k)
    result = pipeline.run(question)
    print(render_pipeline_report(result))
    if copy and copy_to_clipboard(result.query):
        print("\n📋 SQL query copied to clipboard")
    print()


def run_agent(
    llm: LLMInterface,
    database: SQLDatabase,
    settings: Settings,
    question: str,
    max_cycles: int | None,
) -> None:
    agent = SQLAgent(
        llm,
        build_sql_toolkit(database, llm),
        dialect="SQLite",
        top_k=settings.top_k,
        max_cycles=settings.max_cycles,
    )
    print("🤖 Getting agent response...\n")
    try:
        result = agent.run(question, max_cycles=max_cycles)
    except AgentDidNotConverge as e:
        if e.partial_result is not None:
            print(render_agent_report(e.partial_result))
        raise
    print(render_agent_report(result))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_cycles is not None and args.max_cycles < 1:
        parser.error("--max-cycles must be at least 1")

    if not args.question:
        print(USAGE)
        return 1

    try:
        settings = Settings.from_env()
        setup_logging(level=args.log_level or settings.log_level)

        database = SQLDatabase.from_path(args.db or settings.database_path, read_only=True)
        llm = AnthropicLLM.from_settings(settings)

        if args.mode in ("pipeline", "both"):
            run_pipeline(llm, database, settings, args.question, args.copy)
        if args.mode in ("agent", "both"):
            run_agent(llm, database, settings, args.question, args.max_cycles)
    except SQLAgentError as e:
        logger.error("command_failed", error_type=type(e).__name__, error=str(e))
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
