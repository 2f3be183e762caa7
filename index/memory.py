"""
In-process vector index with exact cosine search.

Used for tests and local development (``VECTOR_BACKEND=memory``). Behaves like
the Weaviate index: one instance per entity type, fixed dimensionality after
the first upsert, conjunctive predicates, ascending distance with id
tie-breaking.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from api.errors import ExternalServiceError
from api.models.schemas import IndexedDocument, IndexHit, MetadataValue, Predicate

logger = logging.getLogger(__name__)


def cosine_distance(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Cosine distance between ``query`` and each row of ``matrix``."""
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        similarity = np.where(norms > 0, dots / norms, 0.0)
    return 1.0 - similarity


class InMemoryVectorIndex:
    """Dictionary-backed nearest-neighbour store for one entity type."""

    def __init__(self, name: str):
        self.name = name
        self.dimension: Optional[int] = None
        self._entries: Dict[str, Tuple[np.ndarray, Dict[str, MetadataValue], str]] = {}

    async def initialize(self) -> None:
        logger.info(f"In-memory index {self.name} ready")

    async def upsert(
        self,
        entity_id: str,
        vector: Sequence[float],
        metadata: Dict[str, MetadataValue],
        document: str,
    ) -> None:
        array = np.asarray(vector, dtype=np.float32)
        if self.dimension is None:
            self.dimension = len(array)
        elif len(array) != self.dimension:
            raise ExternalServiceError(
                "vector_index",
                "upsert",
                ValueError(
                    f"Embedding dimension mismatch: expected {self.dimension}, "
                    f"got {len(array)}"
                ),
                entity_id=entity_id,
            )

        self._entries[entity_id] = (array, dict(metadata), document)

    async def get(self, entity_id: str) -> Optional[IndexedDocument]:
        entry = self._entries.get(entity_id)
        if entry is None:
            return None
        _, metadata, document = entry
        return IndexedDocument(id=entity_id, document=document, metadata=dict(metadata))

    async def delete(self, entity_id: str) -> None:
        self._entries.pop(entity_id, None)

    async def query(
        self,
        vector: Sequence[float],
        limit: int,
        predicates: Optional[List[Predicate]] = None,
    ) -> List[IndexHit]:
        predicates = predicates or []
        candidates = [
            (entity_id, entry)
            for entity_id, entry in self._entries.items()
            if all(predicate.matches(entry[1]) for predicate in predicates)
        ]
        if not candidates or limit <= 0:
            return []

        matrix = np.stack([entry[0] for _, entry in candidates])
        distances = cosine_distance(np.asarray(vector, dtype=np.float32), matrix)

        ranked = sorted(
            zip(distances.tolist(), candidates), key=lambda item: (item[0], item[1][0])
        )
        return [
            IndexHit(
                id=entity_id,
                distance=float(distance),
                metadata=dict(entry[1]),
                document=entry[2],
            )
            for distance, (entity_id, entry) in ranked[:limit]
        ]

    async def list_ids(self) -> List[str]:
        return sorted(self._entries)

    async def count(self) -> int:
        return len(self._entries)

    async def ping(self) -> bool:
        return True

    def close(self) -> None:
        """Nothing to release."""
