"""API routes."""

from litestar import Router

from readiness_engine.api.alerts import alerts_router
from readiness_engine.api.batch import batch_router
from readiness_engine.api.checkins import checkins_router
from readiness_engine.api.health import health_router
from readiness_engine.api.injuries import injuries_router
from readiness_engine.api.modifications import modifications_router
from readiness_engine.api.paces import paces_router
from readiness_engine.api.progression import progression_router
from readiness_engine.api.thresholds import thresholds_router

# Versioned API routers, mounted under /api/v1
_v1_routers = [
    checkins_router,
    paces_router,
    thresholds_router,
    progression_router,
    alerts_router,
    modifications_router,
    injuries_router,
    batch_router,
]

api_v1_router = Router(path="/api/v1", route_handlers=_v1_routers)

# health_router: /health, no version prefix
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
