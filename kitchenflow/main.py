"""
KitchenFlow - Main Application Entry Point
Order lifecycle and kitchen ticket service for multi-tenant restaurants
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Callable, Optional
from sqlmodel import Session
import structlog

from kitchenflow.core.config import Settings, get_settings
from kitchenflow.core.database import session_factory as default_session_factory
from kitchenflow.core.events import EventBus
from kitchenflow.core.tenant import BrandKeyCache, TenantResolver
from kitchenflow.core.tenant_middleware import TenantContextMiddleware
from kitchenflow.api import kds, orders, tenant
from kitchenflow.services.handlers import register_handlers

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)


def create_app(
    session_factory: Optional[Callable[[], Session]] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the application; tests pass their own session factory"""
    settings = settings or get_settings()
    session_factory = session_factory or default_session_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        # Startup
        logger.info(f"Initializing {settings.APP_NAME} backend")
        app.state.tenant_resolver = TenantResolver(
            BrandKeyCache(
                ttl_seconds=settings.BRAND_CACHE_TTL_SECONDS,
                max_entries=settings.BRAND_CACHE_MAX_ENTRIES,
            ),
            default_brand_key=settings.DEFAULT_BRAND_KEY,
        )
        app.state.event_bus = EventBus(
            max_attempts=settings.EVENT_MAX_ATTEMPTS,
            retry_backoff_base=settings.EVENT_RETRY_BACKOFF_BASE,
        )
        register_handlers(app.state.event_bus, session_factory, settings)
        # Tables are created by Alembic migrations, not auto-generated
        logger.info("Database managed by Alembic migrations")

        yield

        # Shutdown
        if app.state.event_bus.pending:
            await app.state.event_bus.drain()
        app.state.event_bus.clear_subscribers()
        app.state.tenant_resolver.cache.clear()
        logger.info(f"Shutting down {settings.APP_NAME} backend")

    app = FastAPI(
        title="KitchenFlow API",
        description="Order lifecycle state machine and kitchen display ticket dispatch",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure middleware stack
    app.add_middleware(TenantContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    # Include routers
    app.include_router(orders.router, prefix=f"{settings.API_V1_PREFIX}/orders", tags=["orders"])
    app.include_router(kds.router, prefix=f"{settings.API_V1_PREFIX}/kds", tags=["kds"])
    app.include_router(tenant.router, prefix=f"{settings.API_V1_PREFIX}/tenant", tags=["tenant"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "kitchenflow-api"}

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "message": "KitchenFlow API",
            "version": "1.0.0",
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "kitchenflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
        log_level="info",
    )
