"""
Configuration settings for the matching service.

All values are read from environment variables (a local .env file is loaded
first) so that the same code runs against Weaviate in production and against
the in-memory index in development.
"""

import os
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings read from the environment."""

    def __init__(self):
        # Server
        self.api_host: str = os.getenv("API_HOST", "0.0.0.0")
        self.api_port: int = int(os.getenv("API_PORT", "8000"))
        self.log_level: str = os.getenv("LOG_LEVEL", "info").lower()

        # Relational store
        self.database_url: str = os.getenv(
            "DATABASE_URL", "sqlite:///./candidate_matching.db"
        )

        # Vector index
        self.vector_backend: str = os.getenv("VECTOR_BACKEND", "weaviate").lower()
        self.weaviate_url: str = os.getenv("WEAVIATE_URL", "http://localhost:8080")
        self.weaviate_timeout_init: int = int(os.getenv("WEAVIATE_TIMEOUT_INIT", "30"))
        self.weaviate_timeout_query: int = int(
            os.getenv("WEAVIATE_TIMEOUT_QUERY", "30")
        )
        self.weaviate_timeout_insert: int = int(
            os.getenv("WEAVIATE_TIMEOUT_INSERT", "60")
        )
        self.candidates_collection: str = os.getenv("CANDIDATES_COLLECTION", "Candidate")
        self.jobs_collection: str = os.getenv("JOBS_COLLECTION", "Job")

        # Embedding model
        self.embedding_backend: str = os.getenv(
            "EMBEDDING_BACKEND", "sentence_transformers"
        ).lower()
        self.embedding_model: str = os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2")
        self.embedding_device: Optional[str] = os.getenv("EMBEDDING_DEVICE", "") or None
        self.openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
        self.openai_embedding_model: str = os.getenv(
            "OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"
        )

        # Sync and matching
        self.sync_concurrency: int = int(os.getenv("SYNC_CONCURRENCY", "4"))
        self.match_max_limit: int = int(os.getenv("MATCH_MAX_LIMIT", "100"))

    @property
    def weaviate_host_port(self) -> Tuple[str, int]:
        """Split WEAVIATE_URL into (host, port)."""
        url_parts = self.weaviate_url.replace("http://", "").replace("https://", "")
        url_parts = url_parts.rstrip("/")
        if ":" in url_parts:
            host, port = url_parts.split(":", 1)
            return host, int(port)
        return url_parts, 8080


def get_settings() -> Settings:
    """Build a fresh settings object from the current environment."""
    return Settings()
