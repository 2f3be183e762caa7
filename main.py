"""
Main entry point for the Job-Candidate Matching Service.

This module provides the main entry point for running the FastAPI application
using uvicorn server.
"""

import uvicorn

from api.app import create_app
from api.config import get_settings

settings = get_settings()

app = create_app(settings=settings)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level,
    )
