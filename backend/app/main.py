"""Scheduled Email Engine: FastAPI application and process lifecycle.

Startup order: logging, configuration check, tables, then the engine
runner's recovery (missed-day backfill, today's generation, overdue
sweep) before the refresh loop starts. Statuses served by the API are
therefore never stale from the first request on.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from app.config import get_settings
from api.v1.router import api_v1_router
from api.routes import health
from core.logging_config import setup_logging
from core.middleware import RequestTrackingMiddleware, setup_exception_handlers
from db.database import close_db, init_db
from services.engine_runner import get_engine_runner

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings)

    try:
        settings.validate_engine_settings()
    except RuntimeError as e:
        logger.error("Refusing to start", error=str(e))
        raise

    await init_db()

    runner = get_engine_runner()
    recovery = await runner.recover()
    await runner.start()
    logger.info(
        "Engine ready",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        backfilled_dates=len(recovery.missed_dates),
        recovery_errors=len(recovery.errors),
    )

    yield

    await runner.stop()
    await close_db()
    logger.info("Engine stopped")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Recurring email schedules with daily instance generation, "
                    "missed-day backfill and a pending/overdue work queue.",
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTrackingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", "X-User-ID"],
    )
    setup_exception_handlers(app)

    # Unversioned probe for load balancers, then the versioned API
    app.include_router(health.router, prefix="/api", tags=["Health"])
    app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_app()
