"""API route modules."""

from .matching import router as matching_router

__all__ = [
    "matching_router",
]
