"""
FastAPI Application
===================

Local HTTP surface for the direct pipeline and the SQL agent.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sql_agent import __version__
from sql_agent.agent import SQLAgent
from sql_agent.api.middleware.telemetry import TelemetryMiddleware
from sql_agent.api.routes.health import router as health_router
from sql_agent.api.routes.query import router as query_router
from sql_agent.api.schemas import ErrorResponse
from sql_agent.config import Settings
from sql_agent.database import SQLDatabase
from sql_agent.llm.anthropic import AnthropicLLM
from sql_agent.observability.logging_config import get_logger, setup_logging
from sql_agent.observability.metrics import metrics_endpoint, setup_metrics
from sql_agent.observability.tracing import setup_tracing
from sql_agent.pipeline import DirectPipeline
from sql_agent.tools.sql import build_sql_toolkit

logger = get_logger(__name__)


def build_components(settings: Settings) -> tuple[SQLDatabase, SQLAgent, DirectPipeline]:
    """Create the database, agent and pipeline from settings."""
    database = SQLDatabase.from_path(settings.database_path, read_only=True)
    llm = AnthropicLLM.from_settings(settings)
    agent = SQLAgent(
        llm,
        build_sql_toolkit(database, llm),
        dialect="SQLite",
        top_k=settings.top_k,
        max_cycles=settings.max_cycles,
    )
    pipeline = DirectPipeline(llm, database, top_k=settings.pipeline_top_k)
    return database, agent, pipeline


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler."""
    setup_logging()
    logger.info("Starting SQL agent API", version=__version__)

    state = app.state
    if state.agent is None or state.pipeline is None:
        database, agent, pipeline = build_components(state.settings)
        state.database = state.database or database
        state.agent = state.agent or agent
        state.pipeline = state.pipeline or pipeline

    yield

    logger.info("Shutting down SQL agent API")


def create_app(
    settings: Settings | None = None,
    agent: SQLAgent | None = None,
    pipeline: DirectPipeline | None = None,
    database: SQLDatabase | None = None,
    enable_tracing: bool = True,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration (default: from environment)
        agent: Preconfigured agent (default: built from settings at startup)
        pipeline: Preconfigured pipeline (default: built from settings at startup)
        database: Database used by health checks
        enable_tracing: Install the OpenTelemetry provider and instrumentation
    """
    app = FastAPI(
        title="SQL Agent API",
        description=(
            "Answers natural-language questions about a SQL database, either "
            "with a direct write/execute/answer pipeline or a tool-calling agent."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings or Settings.from_env()
    app.state.agent = agent
    app.state.pipeline = pipeline
    app.state.database = database

    app.add_middleware(TelemetryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(query_router)

    setup_metrics(app, environment=os.getenv("ENVIRONMENT", "development"))
    app.add_route("/metrics", metrics_endpoint)

    if enable_tracing:
        setup_tracing(app)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        request_id = getattr(request.state, "request_id", None)
        logger.exception("unhandled_error", error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="InternalServerError",
                message="An unexpected error occurred",
                request_id=request_id,
            ).model_dump(),
        )

    return app


def main() -> None:
    import uvicorn

    uvicorn.run(
        "sql_agent.api.main:create_app",
        factory=True,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
