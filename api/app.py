"""
FastAPI application factory.

This module creates and configures the FastAPI application with all
routes, middleware, and lifecycle management.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .routes import matching_router
from .services.container import ServiceContainer, build_services

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(
    services: Optional[ServiceContainer] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        services: Pre-built services (tests pass fakes); built from settings
            on startup when omitted
        settings: Application settings, read from the environment if omitted

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        FastAPI lifespan context manager for startup and shutdown tasks.

        Builds and initializes the matching services on startup and closes
        the index connection on shutdown.
        """
        try:
            logger.info("Starting up application...")
            if app.state.services is None:
                app.state.services = build_services(settings)
            await app.state.services.initialize()
            logger.info("Application startup complete")

            yield

        except Exception as e:
            logger.error(f"Startup failed: {e}")
            raise
        finally:
            logger.info("Shutting down application...")
            if app.state.services is not None:
                app.state.services.close()

    app = FastAPI(
        title="Job-Candidate Matching Service",
        description="Service for matching jobs and candidates using vector similarity",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_model=dict)
    async def root():
        return {
            "name": "Job-Candidate Matching Service",
            "description": (
                "Service for matching jobs and candidates using vector similarity"
            ),
            "endpoints": {
                "GET /matching/health": "Check vector index availability",
                "GET /matching/candidates/{id}/jobs": "Find jobs for a candidate",
                "GET /matching/jobs/{id}/candidates": "Find candidates for a job",
                "POST /matching/sync/candidates/{id}": "Sync one candidate",
                "POST /matching/sync/jobs/{id}": "Sync one job",
                "POST /matching/sync": "Sync candidates, jobs or all",
                "DELETE /matching/sync/{type}/{id}": "Remove an entity from its index",
                "POST /matching/prune/{type}": "Remove orphaned index entries",
            },
        }

    app.include_router(matching_router)

    return app
