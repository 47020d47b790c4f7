"""
Deskclock - Main Application
==============================

Business-hours SLA/OLA clock engine for help desk tickets.

Modules:
- SLA Clocks: business-time deadlines, pause/resume, breach and compliance

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Business-time engine, clocks and policies
- Infrastructure: Database, SLA policy file
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

# Configuration and Core
from deskclock.config import Settings, settings as default_settings
from deskclock.core import ApplicationException

# Infrastructure
from deskclock.infrastructure.database import init_database, close_database, create_tables
from deskclock.sla.infrastructure import SLAPolicyManager

# Module Routers
from deskclock.sla.interfaces import sla_router

# Shared
from deskclock.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)
from deskclock.shared.infrastructure.logging import setup_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load SLA policy and start watching it

    SHUTDOWN:
    1. Stop policy watcher
    2. Close database connections
    """
    app_settings: Settings = app.state.settings

    # === STARTUP ===
    setup_logging(app_settings.log_level, app_settings.environment)
    logger.info("Starting clock service", extra={
        "version": app_settings.app_version,
        "environment": app_settings.environment
    })

    logger.info("Initializing database")
    init_database(app_settings.database_url)
    # Development convenience; deployments should run migrations
    await create_tables()

    logger.info("Loading SLA policy", extra={"path": str(app_settings.sla_policy_path)})
    policy_manager = SLAPolicyManager()
    policy_manager.load(app_settings.sla_policy_path)
    if app_settings.watch_sla_policy:
        policy_manager.start_watching()
    app.state.policy_manager = policy_manager

    logger.info("Clock service started")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down clock service")
    policy_manager.stop_watching()
    await close_database()
    logger.info("Clock service shutdown complete")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="Deskclock API",
        description="""
        ## Business-Hours SLA/OLA Clock Engine

        Tracks first-response and resolution deadlines for help desk tickets,
        counting only time inside each tenant's work calendar.

        **Endpoints:**
        - `POST /sla/tickets` - Start clocks for a new ticket
        - `POST /sla/tickets/{id}/events` - Apply a lifecycle event
        - `GET /sla/tickets/{id}` - Clock state, deadlines and breach status
        - `PUT /sla/tenants/{id}/settings` - Tenant calendar and budgets
        - `GET /sla/tenants/{id}/compliance` - Met/breached counts
        """,
        version=app_settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan
    )
    app.state.settings = app_settings

    # === CORS Middleware ===
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # === Custom Middleware (from shared) ===
    # Added last runs first: correlation ID must exist before logging reads it
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_exception_handler(ApplicationException, application_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # === Include Module Routers ===
    app.include_router(sla_router)

    @app.get("/health", tags=["Health"], responses={
        200: {
            "description": "Service is healthy",
            "content": {
                "application/json": {
                    "example": {
                        "status": "healthy",
                        "version": "1.0.0",
                        "environment": "development",
                        "checks": {
                            "database": "configured",
                            "sla_policy": "loaded"
                        }
                    }
                }
            }
        }
    })
    async def health_check(request: Request):
        """
        Health check endpoint for load balancers and orchestrators.
        """
        policy_manager = getattr(request.app.state, "policy_manager", None)
        checks = {
            "database": "configured",
            "sla_policy": "loaded" if policy_manager is not None else "not_loaded",
        }
        return {
            "status": "healthy",
            "version": app_settings.app_version,
            "environment": app_settings.environment,
            "checks": checks
        }

    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": app_settings.app_name,
            "version": app_settings.app_version,
            "architecture": "Clean Architecture / Modular Monolith",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deskclock.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
