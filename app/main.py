"""
Main FastAPI application entry point.
Configures the app, middleware, routers, and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from typing import Dict, Any, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from app.config import Settings, get_settings
from app.application.use_cases.context import TrackingServices
from app.application.use_cases.stats_use_cases import StatsReader
from app.domain.events.base import EventDispatcher
from app.domain.models.caller import role_predicate
from app.domain.services.clock import Clock, SystemClock
from app.domain.services.concurrency_guard import ConcurrencyGuard, UserLockRegistry
from app.domain.services.duration import DurationAccumulator
from app.domain.services.stats_service import StatsAggregator
from app.domain.services.timer_service import TimerService
from app.infrastructure.auth.jwt_handler import JWTHandler
from app.infrastructure.cache.aggregate_cache import AggregateCache, build_cache
from app.infrastructure.db.database import make_engine, make_session_factory, create_all_tables, SessionFactory
from app.infrastructure.events.event_setup import setup_event_handlers
from app.infrastructure.realtime.broadcaster import RealtimeBroadcaster
from app.infrastructure.realtime.hub import RealtimeHub
from app.infrastructure.realtime.registry import ConnectionRegistry
from app.infrastructure.repositories.project_repository import SQLAlchemyProjectRepository
from app.infrastructure.repositories.time_entry_repository import SQLAlchemyTimeEntryRepository
from app.infrastructure.web.middleware.error_handler import register_error_handlers
from app.infrastructure.web.routers import projects, realtime, stats, time_entries

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def init_sentry(settings: Settings) -> None:
    """Initialize Sentry when a DSN is configured outside development."""
    if settings.sentry_dsn and not settings.is_development:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            traces_sample_rate=settings.sentry_traces_sample_rate,
            environment=settings.environment,
            integrations=[
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
            ],
        )
        logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.
    Setup and teardown operations.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info(f"Starting {settings.api_title} v{settings.api_version}")
    logger.info(f"Environment: {settings.environment}")

    init_sentry(settings)
    if app.state.engine is not None:
        create_all_tables(app.state.engine)

    yield

    # Shutdown
    logger.info("Shutting down application")
    if app.state.engine is not None:
        app.state.engine.dispose()


def create_application(
    settings: Optional[Settings] = None,
    session_factory: Optional[SessionFactory] = None,
    clock: Optional[Clock] = None,
    cache: Optional[AggregateCache] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.
    Every collaborator is built here and kept on ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        debug=settings.debug,
        docs_url=f"{settings.api_prefix}/docs" if settings.debug else None,
        redoc_url=f"{settings.api_prefix}/redoc" if settings.debug else None,
        openapi_url=f"{settings.api_prefix}/openapi.json" if settings.debug else None,
        lifespan=lifespan
    )

    # Persistence
    engine = None
    if session_factory is None:
        engine = make_engine(settings.database_url, echo=settings.debug)
        session_factory = make_session_factory(engine)

    clock = clock or SystemClock()
    cache = cache or build_cache(settings.redis_url, settings.cache_ttl_seconds)
    is_elevated = role_predicate(settings.elevated_roles)

    entries = SQLAlchemyTimeEntryRepository(session_factory)
    project_store = SQLAlchemyProjectRepository(session_factory)
    accumulator = DurationAccumulator()
    dispatcher = EventDispatcher()

    services = TrackingServices(
        entries=entries,
        projects=project_store,
        guard=ConcurrencyGuard(entries, UserLockRegistry(settings.entry_lock_timeout_seconds)),
        timer=TimerService(accumulator),
        stats=StatsAggregator(accumulator, settings.stats_timezone),
        cache=cache,
        clock=clock,
        is_elevated=is_elevated,
        dispatcher=dispatcher,
    )

    # Real-time fan-out
    registry = ConnectionRegistry()
    broadcaster = RealtimeBroadcaster(registry, clock)
    stats_reader = StatsReader(services)
    setup_event_handlers(dispatcher, broadcaster, stats_reader)

    app.state.settings = settings
    app.state.engine = engine
    app.state.services = services
    app.state.jwt_handler = JWTHandler(
        settings.jwt_secret_key,
        settings.jwt_algorithm,
        settings.jwt_access_token_expire_minutes,
    )
    app.state.realtime = RealtimeHub(
        registry=registry,
        broadcaster=broadcaster,
        stats_reader=stats_reader,
        is_elevated=is_elevated,
        queue_size=settings.realtime_queue_size,
        sse_stats_interval=settings.sse_stats_interval_seconds,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add custom error handlers and middleware
    register_error_handlers(app, debug=settings.debug)

    # Include routers
    app.include_router(
        time_entries.router,
        prefix=f"{settings.api_prefix}/time-entries",
        tags=["Time Tracking"]
    )
    app.include_router(
        projects.router,
        prefix=f"{settings.api_prefix}/projects",
        tags=["Projects"]
    )
    app.include_router(
        stats.router,
        prefix=f"{settings.api_prefix}/stats",
        tags=["Statistics"]
    )
    app.include_router(
        realtime.router,
        prefix=f"{settings.api_prefix}/realtime",
        tags=["Real-time"]
    )

    # Root endpoint
    @app.get("/")
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "environment": settings.environment,
            "docs": f"{settings.api_prefix}/docs" if settings.debug else None,
            "health": f"{settings.api_prefix}/health"
        }

    # Health check endpoint
    @app.get(f"{settings.api_prefix}/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "environment": settings.environment,
            "version": settings.api_version,
            "realtime_sessions": app.state.realtime.registry.count(),
        }

    # Custom 404 handler
    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        """Custom 404 error handler."""
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not Found",
                "message": getattr(exc, "detail", None) or f"The path {request.url.path} was not found",
                "path": request.url.path
            }
        )

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "app.main:create_application",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )
