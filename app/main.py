"""FastAPI application entry point for the feedback service.

This module initializes the FastAPI application, sets up logging,
creates tables, syncs the survey catalog, registers routers, and handles
global exception handling.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.dependencies import get_response_store
from app.logging_config import setup_logging, get_logger
from app.models.database import get_engine, init_db
from app.routes import follow_up, health, redemption, surveys
from app.services.survey_loader import get_survey_loader

# Initialize logger (will be configured during startup)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup:
    - Configure logging
    - Create missing tables
    - Sync YAML survey catalog into the store

    Shutdown:
    - Log shutdown event
    - Dispose of the database engine

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings = get_settings()
    setup_logging()

    logger.info(
        f"Feedback service starting - "
        f"Environment: {settings.environment}, "
        f"Log Level: {settings.log_level}, "
        f"Database: {settings.database_url.split('@')[-1] if '@' in settings.database_url else 'configured'}"
    )

    engine = get_engine()
    init_db(engine)
    get_survey_loader().sync_to_store(get_response_store())

    yield

    logger.info("Feedback service shutting down")
    engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title="Feedback Service",
    description="One-click email survey responses with signed links and bot scoring",
    version="1.0.0",
    lifespan=lifespan
)


@app.get("/")
async def root() -> dict:
    """Root endpoint with basic API information.

    Returns:
        dict: API information and status
    """
    settings = get_settings()
    return {
        "service": "Feedback Service",
        "version": "1.0.0",
        "environment": settings.environment,
        "status": "operational"
    }


# Register routers
app.include_router(health.router, tags=["Health"])
app.include_router(redemption.router, tags=["Responses"])
app.include_router(surveys.router, tags=["Surveys"])
app.include_router(follow_up.router, tags=["Responses"])


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled exceptions.

    Logs all unhandled exceptions and returns a generic error response
    to prevent leaking sensitive information.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSONResponse: Generic error response
    """
    logger.error(
        f"Unhandled exception for {request.method} {request.url.path}: {exc}",
        exc_info=True
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )
