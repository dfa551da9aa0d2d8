"""API Middleware."""

from sql_agent.api.middleware.telemetry import TelemetryMiddleware

__all__ = ["TelemetryMiddleware"]
