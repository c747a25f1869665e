"""API v1 aggregated router.

All v1 endpoints are registered here and mounted under /api/v1 in main.py.
"""

from fastapi import APIRouter

from api.routes import engine, health, instances, placeholders, schedules

api_v1_router = APIRouter()

# Health
api_v1_router.include_router(
    health.router,
    tags=["Health"],
)

# Schedule store
api_v1_router.include_router(
    schedules.router,
    prefix="/schedules",
    tags=["Schedules"],
)

# Instances: queries, generation, lifecycle
api_v1_router.include_router(
    instances.router,
    prefix="/instances",
    tags=["Instances"],
)

# Placeholder preview
api_v1_router.include_router(
    placeholders.router,
    prefix="/placeholders",
    tags=["Placeholders"],
)

# Engine runner
api_v1_router.include_router(
    engine.router,
    prefix="/engine",
    tags=["Engine"],
)
