"""
Explicit construction of the matching services.

The app factory builds one ``ServiceContainer`` from settings; tests build
one directly from fakes. Nothing in the core reaches for a module-level
client.
"""

import logging
from typing import Dict, Optional

from api.config import Settings
from api.interfaces import Embedder, RelationalStore, VectorIndex
from api.models.schemas import EntityType
from index import InMemoryVectorIndex, WeaviateVectorIndex, connect_weaviate
from store import SqlAlchemyStore, create_session_factory, create_store_engine

from .embedding import create_embedding_service
from .matching import MatchQueryEngine
from .sync import SyncOrchestrator

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds the injected service handles and the components built on them."""

    def __init__(
        self,
        store: RelationalStore,
        embedder: Embedder,
        indexes: Dict[EntityType, VectorIndex],
        sync_concurrency: int = 4,
        match_max_limit: int = 100,
        client=None,
    ):
        """
        Args:
            store: Read-only relational store
            embedder: Embedding service
            indexes: One vector index per entity type
            sync_concurrency: Bounded concurrency for batch sync
            match_max_limit: Upper bound for match ``limit``
            client: Optional shared index client closed on shutdown
        """
        self.store = store
        self.embedder = embedder
        self.indexes = indexes
        self.client = client
        self.sync = SyncOrchestrator(store, embedder, indexes, concurrency=sync_concurrency)
        self.matching = MatchQueryEngine(embedder, indexes, max_limit=match_max_limit)

    async def initialize(self) -> None:
        """Prepare the indexes. The embedding model loads lazily on first use."""
        for entity_type, index in self.indexes.items():
            logger.info(f"Initializing {entity_type.value} index {index.name}")
            await index.initialize()

    def close(self) -> None:
        for index in self.indexes.values():
            index.close()
        if self.client is not None:
            self.client.close()
            logger.info("Vector index connection closed")


def build_services(settings: Settings, engine=None) -> ServiceContainer:
    """
    Build the production services from settings.

    Args:
        settings: Application settings
        engine: Optional SQLAlchemy engine (created from DATABASE_URL if omitted)

    Returns:
        ServiceContainer wired to the configured backends
    """
    engine = engine or create_store_engine(settings.database_url)
    store = SqlAlchemyStore(create_session_factory(engine))
    embedder = create_embedding_service(settings)

    client: Optional[object] = None
    if settings.vector_backend == "memory":
        indexes = {
            EntityType.CANDIDATES: InMemoryVectorIndex(settings.candidates_collection),
            EntityType.JOBS: InMemoryVectorIndex(settings.jobs_collection),
        }
    elif settings.vector_backend == "weaviate":
        client = connect_weaviate(settings)
        indexes = {
            EntityType.CANDIDATES: WeaviateVectorIndex(
                client, EntityType.CANDIDATES, settings.candidates_collection
            ),
            EntityType.JOBS: WeaviateVectorIndex(
                client, EntityType.JOBS, settings.jobs_collection
            ),
        }
    else:
        raise ValueError(
            f"Unknown vector backend: {settings.vector_backend}. "
            f"Use 'weaviate' or 'memory'"
        )

    return ServiceContainer(
        store,
        embedder,
        indexes,
        sync_concurrency=settings.sync_concurrency,
        match_max_limit=settings.match_max_limit,
        client=client,
    )
