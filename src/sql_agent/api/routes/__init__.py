"""API Routes."""

from sql_agent.api.routes.query import router as query_router
from sql_agent.api.routes.health import router as health_router

__all__ = ["query_router", "health_router"]
