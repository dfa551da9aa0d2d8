"""
Health Check Routes
===================

Liveness, readiness and component health for the question service.
"""

from fastapi import APIRouter, Request

from sql_agent import __version__
from sql_agent.api.schemas import HealthResponse, HealthStatus, ReadinessResponse
from sql_agent.errors import SqlExecutionError

router = APIRouter(tags=["Health"])


def database_reachable(request: Request) -> bool:
    """True when the configured database answers a trivial query."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        return False
    try:
        database.run("SELECT 1")
    except SqlExecutionError:
        return False
    return True


@router.get("/health", response_model=HealthResponse, summary="Component health")
def health_check(request: Request) -> HealthResponse:
    """Degraded (not failing) when the database cannot be queried."""
    checks = {"api": True, "database": database_reachable(request)}
    return HealthResponse(
        status=HealthStatus.HEALTHY if all(checks.values()) else HealthStatus.DEGRADED,
        version=__version__,
        checks=checks,
    )


@router.get("/ready", response_model=ReadinessResponse, summary="Ready to answer questions")
def readiness_check(request: Request) -> ReadinessResponse:
    state = request.app.state
    checks = {
        "agent_loaded": getattr(state, "agent", None) is not None,
        "pipeline_loaded": getattr(state, "pipeline", None) is not None,
        "database": database_reachable(request),
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)


@router.get("/live", summary="Process is running")
async def liveness_check() -> dict:
    return {"status": "ok"}
