"""
Study Plan Scheduler - Main Application Entry Point

Learning plans made of day-bucketed steps, for the chat assistant and the web UI.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyplan.core.config import get_settings
from studyplan.core.logger import setup_logger

logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Study Plan Scheduler in {settings.ENVIRONMENT} mode...")

    if settings.is_local:
        from studyplan.infrastructure.local.database import init_db

        await init_db()

    yield

    # Shutdown
    logger.info("Shutting down Study Plan Scheduler...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Study Plan Scheduler",
        description="Learning plans with day-bucketed steps",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    from studyplan.api import marketplace, plans, todos

    app.include_router(plans.router, prefix="/api/plans", tags=["plans"])
    app.include_router(todos.router, prefix="/api/todos", tags=["todos"])
    app.include_router(marketplace.router, prefix="/api/marketplace", tags=["marketplace"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "studyplan.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
