"""
Sync orchestrator: keeps vector index entries consistent with relational records.

``sync_one`` is the unit of consistency. Batches call it per record with
bounded concurrency and record failures instead of aborting, so a batch
"succeeds" once every record has been attempted.
"""

import asyncio
import logging
import time
import uuid
from typing import Dict, List, Tuple

from api.errors import MatchingError, NotFoundInStore, ValidationError
from api.interfaces import Embedder, RelationalStore, VectorIndex
from api.models.schemas import EntityType, IndexedDocument, SyncFailure, SyncReport

from .canonical import candidate_metadata, candidate_text, job_metadata, job_text

logger = logging.getLogger(__name__)


def validate_entity_id(entity_id: str, operation: str) -> str:
    """
    Check that ``entity_id`` is a UUID string and return its canonical form.

    Upper-case, braced, ``urn:uuid:`` and unhyphenated spellings all map to
    the lower-case hyphenated form used as the index key.

    Raises:
        ValidationError: If the id is malformed
    """
    try:
        return str(uuid.UUID(str(entity_id)))
    except ValueError:
        raise ValidationError(
            f"Invalid id format: {entity_id!r}", entity_id=entity_id, operation=operation
        )


def _canonical_ids(ids) -> Dict[str, str]:
    canonical = {}
    for entity_id in ids:
        try:
            canonical[str(uuid.UUID(str(entity_id)))] = entity_id
        except ValueError:
            canonical[entity_id] = entity_id
    return canonical


def parse_entity_type(value) -> EntityType:
    try:
        return EntityType(value)
    except ValueError:
        raise ValidationError(
            f"Invalid entity type: {value!r}. Use 'candidates' or 'jobs'"
        )


class SyncOrchestrator:
    """Pulls relational state, canonicalizes, embeds and upserts into the index."""

    def __init__(
        self,
        store: RelationalStore,
        embedder: Embedder,
        indexes: Dict[EntityType, VectorIndex],
        concurrency: int = 4,
    ):
        """
        Args:
            store: Read-only relational store
            embedder: Embedding service
            indexes: One vector index per entity type
            concurrency: Maximum records synced at once by ``sync_all``
        """
        self.store = store
        self.embedder = embedder
        self.indexes = indexes
        self.concurrency = max(1, concurrency)

    async def _load(self, entity_type: EntityType, entity_id: str) -> Tuple[str, dict]:
        if entity_type is EntityType.CANDIDATES:
            record = await self.store.get_candidate(entity_id)
            if record is None:
                raise NotFoundInStore("candidate", entity_id)
            return candidate_text(record), candidate_metadata(record)

        record = await self.store.get_job(entity_id)
        if record is None:
            raise NotFoundInStore("job", entity_id)
        return job_text(record), job_metadata(record)

    async def sync_one(self, entity_type: EntityType, entity_id: str) -> IndexedDocument:
        """
        Regenerate and write the index entry for one record.

        Args:
            entity_type: candidates or jobs
            entity_id: UUID of the record

        Returns:
            The document and metadata that were written

        Raises:
            ValidationError: If the id is malformed or an enum value is unknown
            NotFoundInStore: If the record does not exist
            ExternalServiceError: If embedding or the index write fails
        """
        entity_type = parse_entity_type(entity_type)
        entity_id = validate_entity_id(entity_id, "sync")

        document, metadata = await self._load(entity_type, entity_id)
        vector = await self.embedder.embed(document)
        await self.indexes[entity_type].upsert(entity_id, vector, metadata, document)

        logger.info(f"{entity_type.singular.capitalize()} {entity_id} synced to vector index")
        return IndexedDocument(id=entity_id, document=document, metadata=metadata)

    async def _list_ids(self, entity_type: EntityType) -> List[str]:
        if entity_type is EntityType.CANDIDATES:
            return await self.store.list_candidate_ids()
        # inactive and filled jobs are not searchable
        return await self.store.list_job_ids(status="ACTIVE")

    async def sync_all(self, entity_type: EntityType) -> SyncReport:
        """
        Sync every record of a type (jobs: active only).

        A failure on one record is logged and recorded in the report; the
        remaining records are still synced.

        Args:
            entity_type: candidates or jobs

        Returns:
            SyncReport with the synced ids and per-record failures
        """
        entity_type = parse_entity_type(entity_type)
        start_time = time.time()

        ids = await self._list_ids(entity_type)
        logger.info(f"Syncing {len(ids)} {entity_type.value} to vector index...")

        report = SyncReport(entity_type=entity_type, attempted=len(ids))
        semaphore = asyncio.Semaphore(self.concurrency)

        async def _sync(entity_id: str) -> None:
            async with semaphore:
                try:
                    written = await self.sync_one(entity_type, entity_id)
                except MatchingError as e:
                    logger.error(f"Failed to sync {entity_type.singular} {entity_id}: {e}")
                    report.failed.append(
                        SyncFailure(
                            entity_id=entity_id,
                            operation=e.operation or "sync",
                            error=str(e),
                        )
                    )
                except Exception as e:
                    logger.exception(
                        f"Unexpected error syncing {entity_type.singular} {entity_id}"
                    )
                    report.failed.append(
                        SyncFailure(entity_id=entity_id, operation="sync", error=str(e))
                    )
                else:
                    report.synced.append(written.id)

        await asyncio.gather(*(_sync(entity_id) for entity_id in ids))

        report.synced.sort()
        report.failed.sort(key=lambda failure: failure.entity_id)
        report.duration_ms = (time.time() - start_time) * 1000

        logger.info(
            f"Synced {len(report.synced)}/{report.attempted} {entity_type.value} "
            f"in {report.duration_ms:.2f}ms, {len(report.failed)} failed"
        )
        return report

    async def sync_everything(self) -> List[SyncReport]:
        """Sync all candidates, then all active jobs."""
        return [
            await self.sync_all(EntityType.CANDIDATES),
            await self.sync_all(EntityType.JOBS),
        ]

    async def remove(self, entity_type: EntityType, entity_id: str) -> None:
        """Delete an entry from the index only. Idempotent."""
        entity_type = parse_entity_type(entity_type)
        entity_id = validate_entity_id(entity_id, "remove")

        await self.indexes[entity_type].delete(entity_id)
        logger.info(
            f"{entity_type.singular.capitalize()} {entity_id} removed from vector index"
        )

    async def prune(self, entity_type: EntityType) -> List[str]:
        """
        Remove index entries that no longer have a searchable relational record.

        Returns:
            Sorted list of removed ids
        """
        entity_type = parse_entity_type(entity_type)

        # relational and index ids may differ in case or spelling
        wanted = _canonical_ids(await self._list_ids(entity_type))
        indexed = _canonical_ids(await self.indexes[entity_type].list_ids())
        orphans = sorted(
            raw_id for key, raw_id in indexed.items() if key not in wanted
        )

        for entity_id in orphans:
            await self.indexes[entity_type].delete(entity_id)

        logger.info(f"Pruned {len(orphans)} orphaned {entity_type.value} from vector index")
        return orphans
