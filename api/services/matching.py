"""
Match query engine.

Ranks entries of the opposite entity type by cosine similarity to a source
entity's stored canonical text. The engine is read-only: it never touches the
relational store and never writes to an index.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from api.errors import NotSyncedInIndex, ValidationError
from api.interfaces import Embedder, VectorIndex
from api.models.schemas import (
    CandidateMatch,
    CandidateMatchFilters,
    EntityType,
    HealthResponse,
    IndexHealth,
    IndexHit,
    JobMatch,
    JobMatchFilters,
)

from .canonical import candidate_from_metadata, job_from_metadata
from .sync import validate_entity_id

logger = logging.getLogger(__name__)


def similarity_score(distance: float) -> float:
    """
    Convert cosine distance to the similarity score returned to callers.

    This is the fixed transform ``1 - distance``, not a learned scale and not
    clamped. Cosine distance ranges over [0, 2], so the score lies in [-1, 1];
    it stays within [0, 1] only while the two embeddings are not negatively
    correlated, which holds for sentence-transformers text embeddings in
    practice.
    """
    return 1.0 - distance


def parse_filters(
    model: Type[BaseModel], filters: Union[BaseModel, Mapping, None]
) -> BaseModel:
    """
    Validate caller filters once at the entry point.

    Raises:
        ValidationError: If a key is unknown or a value is malformed
    """
    if filters is None:
        return model()
    if isinstance(filters, model):
        return filters
    try:
        return model.model_validate(dict(filters))
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'filters'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid filters: {details}", operation="match")
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid filters: {e}", operation="match")


class MatchQueryEngine:
    """Nearest-neighbour matching between candidates and jobs."""

    def __init__(
        self,
        embedder: Embedder,
        indexes: Dict[EntityType, VectorIndex],
        max_limit: int = 100,
    ):
        self.embedder = embedder
        self.indexes = indexes
        self.max_limit = max_limit

    def _check_limit(self, limit: int) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int):
            raise ValidationError(f"limit must be an integer, got {limit!r}", operation="match")
        if limit < 1 or limit > self.max_limit:
            raise ValidationError(
                f"limit must be between 1 and {self.max_limit}, got {limit}",
                operation="match",
            )
        return limit

    async def _query_opposite(
        self,
        source_type: EntityType,
        source_id: str,
        limit: int,
        predicates,
    ) -> List[IndexHit]:
        stored = await self.indexes[source_type].get(source_id)
        if stored is None or not stored.document:
            raise NotSyncedInIndex(source_type.singular, source_id)

        # Re-embed the stored text rather than reading back the stored vector
        query_vector = await self.embedder.embed(stored.document)

        return await self.indexes[source_type.opposite].query(
            query_vector, limit, predicates
        )

    async def match_jobs_for_candidate(
        self,
        candidate_id: str,
        limit: int = 10,
        filters: Union[JobMatchFilters, Mapping, None] = None,
    ) -> List[JobMatch]:
        """
        Find the jobs most similar to a synced candidate.

        Args:
            candidate_id: UUID of the candidate
            limit: Maximum number of matches (1..max_limit)
            filters: JobMatchFilters or an equivalent mapping

        Returns:
            Job matches in non-increasing score order

        Raises:
            ValidationError: Malformed id, limit or filters
            NotSyncedInIndex: The candidate has no index entry
            ExternalServiceError: Embedding or index failure
        """
        candidate_id = validate_entity_id(candidate_id, "match")
        limit = self._check_limit(limit)
        job_filters = parse_filters(JobMatchFilters, filters)

        start_time = time.time()
        hits = await self._query_opposite(
            EntityType.CANDIDATES, candidate_id, limit, job_filters.to_predicates()
        )

        matches = [
            JobMatch(
                id=hit.id,
                score=similarity_score(hit.distance),
                distance=hit.distance,
                metadata=hit.metadata,
                job=job_from_metadata(hit.id, hit.metadata),
            )
            for hit in hits
        ]

        logger.info(
            f"Found {len(matches)} matching jobs for candidate {candidate_id} "
            f"in {(time.time() - start_time) * 1000:.2f}ms"
        )
        return matches

    async def match_candidates_for_job(
        self,
        job_id: str,
        limit: int = 10,
        filters: Union[CandidateMatchFilters, Mapping, None] = None,
    ) -> List[CandidateMatch]:
        """
        Find the candidates most similar to a synced job.

        Args:
            job_id: UUID of the job
            limit: Maximum number of matches (1..max_limit)
            filters: CandidateMatchFilters or an equivalent mapping

        Returns:
            Candidate matches in non-increasing score order

        Raises:
            ValidationError: Malformed id, limit or filters
            NotSyncedInIndex: The job has no index entry
            ExternalServiceError: Embedding or index failure
        """
        job_id = validate_entity_id(job_id, "match")
        limit = self._check_limit(limit)
        candidate_filters = parse_filters(CandidateMatchFilters, filters)

        start_time = time.time()
        hits = await self._query_opposite(
            EntityType.JOBS, job_id, limit, candidate_filters.to_predicates()
        )

        matches = [
            CandidateMatch(
                id=hit.id,
                score=similarity_score(hit.distance),
                distance=hit.distance,
                metadata=hit.metadata,
                candidate=candidate_from_metadata(hit.id, hit.metadata),
            )
            for hit in hits
        ]

        logger.info(
            f"Found {len(matches)} matching candidates for job {job_id} "
            f"in {(time.time() - start_time) * 1000:.2f}ms"
        )
        return matches

    async def _index_health(self, index: VectorIndex) -> Tuple[bool, IndexHealth]:
        try:
            await index.initialize()
            ready = await index.ping()
            count: Optional[int] = await index.count() if ready else None
        except Exception as e:
            logger.error(f"Health check for index {index.name} failed: {e}")
            return False, IndexHealth(ready=False, error=str(e))
        return ready, IndexHealth(ready=ready, count=count)

    async def health(self) -> HealthResponse:
        """
        Exercise index initialization without calling the embedding model.

        Distinguishes "index unreachable" (status offline) from "model
        unreachable", which only shows up on sync or match calls.
        """
        indexes = {}
        online = True
        for entity_type, index in self.indexes.items():
            ready, index_health = await self._index_health(index)
            indexes[entity_type.value] = index_health
            online = online and ready

        return HealthResponse(
            status="online" if online else "offline",
            indexes=indexes,
            embedding_backend=self.embedder.backend_name,
            embedding_model_loaded=self.embedder.is_initialized(),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
