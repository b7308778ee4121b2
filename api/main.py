"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import health
from api.routes.v1 import analyses
from core.config import Settings, settings
from core.middleware import (
    ErrorHandlingMiddleware,
    StructuredLoggingMiddleware,
    setup_error_handlers,
    setup_logging,
)
from database.engine import build_engine, build_sessionmaker, close_db, init_db

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


def create_app(app_settings: Settings = settings) -> FastAPI:
    """Build the API application for the given settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan events."""
        logger.info(f"Starting {app_settings.app_name} in {app_settings.app_env} environment")
        engine = build_engine(app_settings)
        app.state.engine = engine
        app.state.sessionmaker = build_sessionmaker(engine)
        await init_db(engine)

        yield

        logger.info(f"Shutting down {app_settings.app_name}")
        await close_db(engine)

    app = FastAPI(
        title=app_settings.app_name,
        description="ReelCV video analysis service",
        version="0.1.0",
        docs_url="/docs" if app_settings.debug else None,
        redoc_url="/redoc" if app_settings.debug else None,
        lifespan=lifespan,
    )

    # Setup error handlers (before middleware)
    setup_error_handlers(app)

    # Add middleware (order matters - they execute in reverse order)
    # 1. Error handling middleware (innermost - catches errors raised by the routes)
    app.add_middleware(
        ErrorHandlingMiddleware,
        debug=app_settings.debug,
    )

    # 2. Structured logging middleware (logs all requests/responses)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=app_settings.log_request_body,
        log_response_body=app_settings.log_response_body,
        max_body_size=app_settings.log_max_body_size,
    )

    # 3. CORS middleware (outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # API v1 routes
    app.include_router(
        analyses.router,
        prefix=f"{app_settings.api_v1_prefix}/analyses",
        tags=["Analyses"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
