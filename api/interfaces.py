"""
Protocols for the services the matching core depends on.

The sync orchestrator and match engine receive these as constructor
arguments, so tests can pass deterministic fakes instead of a real model,
Weaviate instance or database.
"""

from typing import Dict, List, Optional, Protocol, Sequence

import numpy as np

from api.models.schemas import (
    CandidateRecord,
    IndexedDocument,
    IndexHit,
    JobRecord,
    MetadataValue,
    Predicate,
)


class Embedder(Protocol):
    backend_name: str

    async def initialize(self) -> None: ...

    async def embed(self, text: str) -> np.ndarray: ...

    def is_initialized(self) -> bool: ...


class VectorIndex(Protocol):
    name: str

    async def initialize(self) -> None: ...

    async def upsert(
        self,
        entity_id: str,
        vector: Sequence[float],
        metadata: Dict[str, MetadataValue],
        document: str,
    ) -> None: ...

    async def get(self, entity_id: str) -> Optional[IndexedDocument]: ...

    async def delete(self, entity_id: str) -> None: ...

    async def query(
        self,
        vector: Sequence[float],
        limit: int,
        predicates: Optional[List[Predicate]] = None,
    ) -> List[IndexHit]: ...

    async def list_ids(self) -> List[str]: ...

    async def count(self) -> int: ...

    async def ping(self) -> bool: ...

    def close(self) -> None: ...


class RelationalStore(Protocol):
    async def get_candidate(self, candidate_id: str) -> Optional[CandidateRecord]: ...

    async def get_job(self, job_id: str) -> Optional[JobRecord]: ...

    async def list_candidate_ids(self) -> List[str]: ...

    async def list_job_ids(self, status: Optional[str] = "ACTIVE") -> List[str]: ...
