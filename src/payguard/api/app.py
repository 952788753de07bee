"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from payguard import __version__
from payguard.api.middleware import RequestLoggingMiddleware, register_exception_handlers
from payguard.api.routers import health_router, v1_router
from payguard.compliance.engine import ComplianceEngine, create_compliance_engine
from payguard.config.settings import Settings, get_settings
from payguard.core.audit import GatewayAuditSink
from payguard.core.logging import get_logger, setup_logging
from payguard.db.config import close_db, create_engine, create_session_factory, init_db
from payguard.db.gateway import SQLAlchemyStorageGateway

logger = get_logger(__name__)


def create_app(engine: ComplianceEngine | None = None, settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        engine: Prebuilt compliance engine. When omitted, the engine is
            built at startup over the configured database.
        settings: Optional settings override (useful for testing)

    Returns:
        Configured FastAPI application

    Example:
        # Testing
        engine = create_compliance_engine(InMemoryStorageGateway(), InMemoryAuditSink())
        app = create_app(engine=engine)

        # Run with uvicorn
        uvicorn payguard.api.app:create_app --factory
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="PayGuard API",
        description="Data lifecycle compliance: erasure, export and retention",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=None if engine is not None else _lifespan,
    )
    app.state.settings = settings
    if engine is not None:
        app.state.compliance_engine = engine

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router)
    return app


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the database-backed engine on startup and release it on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(
        log_level=settings.log_level,
        json_format=settings.ENVIRONMENT == "production",
    )
    logger.info("Starting PayGuard API", environment=settings.ENVIRONMENT)

    db_engine = create_engine(settings)
    await init_db(db_engine, create_tables=settings.ENVIRONMENT != "production")
    gateway = SQLAlchemyStorageGateway(create_session_factory(db_engine))
    engine = create_compliance_engine(gateway, GatewayAuditSink(gateway), settings=settings)
    app.state.compliance_engine = engine
    if settings.retention.run_scheduler:
        await engine.retention.start()

    try:
        yield
    finally:
        logger.info("Shutting down PayGuard API")
        await engine.retention.stop()
        await close_db(db_engine)
