"""Production domain API package."""

from production.api.routes import order_router, team_router

__all__ = ["order_router", "team_router"]
