"""Vector index adapters."""

from .memory import InMemoryVectorIndex
from .search_engine import WeaviateVectorIndex, build_filter, connect_weaviate

__all__ = [
    "InMemoryVectorIndex",
    "WeaviateVectorIndex",
    "build_filter",
    "connect_weaviate",
]
