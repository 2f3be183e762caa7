"""
Weaviate vector index for candidates and jobs.

One ``WeaviateVectorIndex`` wraps one collection. Vectors are self-provided,
stored in an HNSW index with cosine distance, and the entity id is used as
the Weaviate object UUID so that get/delete/upsert are keyed directly.
"""

import asyncio
import logging
from functools import reduce
from typing import Dict, List, Optional, Sequence

import weaviate
from weaviate.classes.config import (
    Configure,
    DataType,
    Property,
    Tokenization,
    VectorDistances,
)
from weaviate.classes.data import DataObject
from weaviate.classes.init import AdditionalConfig, Timeout
from weaviate.classes.query import Filter, MetadataQuery
from weaviate.exceptions import WeaviateBaseError

from api.config import Settings
from api.errors import ExternalServiceError
from api.models.schemas import (
    EntityType,
    Equals,
    IndexedDocument,
    IndexHit,
    MetadataValue,
    Predicate,
    Range,
)

logger = logging.getLogger(__name__)

DOCUMENT_PROPERTY = "document"

CANDIDATE_PROPERTIES: Dict[str, DataType] = {
    "first_name": DataType.TEXT,
    "last_name": DataType.TEXT,
    "email": DataType.TEXT,
    "experience": DataType.INT,
    "location": DataType.TEXT,
    "availability": DataType.TEXT,
    "skills_count": DataType.INT,
    "salary_expectation": DataType.INT,
    "skills": DataType.TEXT,
}

JOB_PROPERTIES: Dict[str, DataType] = {
    "title": DataType.TEXT,
    "company": DataType.TEXT,
    "experience_level": DataType.TEXT,
    "location": DataType.TEXT,
    "remote_ok": DataType.BOOL,
    "employment_type": DataType.TEXT,
    "salary_min": DataType.INT,
    "salary_max": DataType.INT,
    "required_skills_count": DataType.INT,
    "preferred_skills_count": DataType.INT,
    "required_skills": DataType.TEXT,
    "preferred_skills": DataType.TEXT,
}

PROPERTIES_BY_TYPE = {
    EntityType.CANDIDATES: CANDIDATE_PROPERTIES,
    EntityType.JOBS: JOB_PROPERTIES,
}

# Equality filters must compare whole values, not word tokens
EXACT_MATCH_PROPERTIES = {"location", "availability", "experience_level", "employment_type"}


def collection_properties(entity_type: EntityType) -> List[Property]:
    """Weaviate property definitions for one entity type's collection."""
    properties = [
        Property(
            name=name,
            data_type=data_type,
            tokenization=Tokenization.FIELD if name in EXACT_MATCH_PROPERTIES else None,
        )
        for name, data_type in PROPERTIES_BY_TYPE[entity_type].items()
    ]
    properties.append(Property(name=DOCUMENT_PROPERTY, data_type=DataType.TEXT))
    return properties


def connect_weaviate(settings: Settings) -> weaviate.WeaviateClient:
    """
    Open a Weaviate client from settings.

    Raises:
        ExternalServiceError: If the connection cannot be established
    """
    host, port = settings.weaviate_host_port
    logger.info(f"Connecting to Weaviate at {host}:{port}")

    try:
        return weaviate.connect_to_local(
            host=host,
            port=port,
            additional_config=AdditionalConfig(
                timeout=Timeout(
                    init=settings.weaviate_timeout_init,
                    query=settings.weaviate_timeout_query,
                    insert=settings.weaviate_timeout_insert,
                )
            ),
        )
    except WeaviateBaseError as e:
        logger.error(f"Weaviate connection failed: {e}")
        raise ExternalServiceError("vector_index", "connect", e)


def _filter_value(value):
    # INT properties reject float filter values
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _metadata(properties) -> Dict[str, MetadataValue]:
    return {key: value for key, value in properties.items() if value is not None}


def build_filter(predicates: Optional[List[Predicate]]) -> Optional[Filter]:
    """Build a conjunctive Weaviate filter from index predicates."""
    if not predicates:
        return None

    conditions = []
    for predicate in predicates:
        prop = Filter.by_property(predicate.field)
        if isinstance(predicate, Equals):
            conditions.append(prop.equal(predicate.value))
        elif isinstance(predicate, Range):
            if predicate.gte is not None:
                conditions.append(prop.greater_or_equal(_filter_value(predicate.gte)))
            if predicate.lte is not None:
                conditions.append(
                    Filter.by_property(predicate.field).less_or_equal(
                        _filter_value(predicate.lte)
                    )
                )
        else:
            raise TypeError(f"Unsupported predicate: {predicate!r}")

    return reduce(lambda left, right: left & right, conditions)


class WeaviateVectorIndex:
    """Nearest-neighbour store for one entity type, backed by a Weaviate collection."""

    def __init__(
        self,
        client: weaviate.WeaviateClient,
        entity_type: EntityType,
        collection_name: str,
    ):
        """
        Args:
            client: Connected Weaviate client, shared between indexes
            entity_type: Entity type whose metadata schema this collection uses
            collection_name: Weaviate collection name
        """
        self.client = client
        self.entity_type = entity_type
        self.name = collection_name
        self.properties = PROPERTIES_BY_TYPE[entity_type]
        self._return_properties = list(self.properties) + [DOCUMENT_PROPERTY]

    async def _run(self, operation: str, fn, entity_id: Optional[str] = None):
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, fn)
        except WeaviateBaseError as e:
            logger.error(f"Weaviate {operation} on {self.name} failed: {e}")
            raise ExternalServiceError("vector_index", operation, e, entity_id=entity_id)

    @property
    def collection(self):
        return self.client.collections.get(self.name)

    async def initialize(self) -> None:
        """Create the collection if it does not exist yet. Existing data is kept."""

        def _create():
            collections = self.client.collections
            if collections.exists(self.name):
                return False

            collections.create(
                name=self.name,
                properties=collection_properties(self.entity_type),
                vector_config=Configure.Vectors.self_provided(
                    vector_index_config=Configure.VectorIndex.hnsw(
                        distance_metric=VectorDistances.COSINE
                    )
                ),
                inverted_index_config=Configure.inverted_index(),
            )
            return True

        created = await self._run("initialize", _create)
        if created:
            logger.info(f"Created {self.name} collection")

    async def upsert(
        self,
        entity_id: str,
        vector: Sequence[float],
        metadata: Dict[str, MetadataValue],
        document: str,
    ) -> None:
        """Insert or fully replace the object whose UUID is ``entity_id``."""
        properties = {key: metadata[key] for key in self.properties if key in metadata}
        properties[DOCUMENT_PROPERTY] = document
        data_object = DataObject(
            uuid=entity_id, properties=properties, vector=[float(v) for v in vector]
        )

        result = await self._run(
            "upsert",
            lambda: self.collection.data.insert_many([data_object]),
            entity_id=entity_id,
        )

        if result.has_errors:
            errors = "; ".join(str(error) for error in result.errors.values())
            logger.error(f"Upsert of {entity_id} into {self.name} failed: {errors}")
            raise ExternalServiceError(
                "vector_index", "upsert", RuntimeError(errors), entity_id=entity_id
            )

    async def get(self, entity_id: str) -> Optional[IndexedDocument]:
        obj = await self._run(
            "get",
            lambda: self.collection.query.fetch_object_by_id(
                entity_id, return_properties=self._return_properties
            ),
            entity_id=entity_id,
        )
        if obj is None:
            return None

        metadata = _metadata(obj.properties)
        document = metadata.pop(DOCUMENT_PROPERTY, "") or ""
        return IndexedDocument(id=str(obj.uuid), document=document, metadata=metadata)

    async def delete(self, entity_id: str) -> None:
        """Delete the object. Deleting a missing id is not an error."""
        deleted = await self._run(
            "delete",
            lambda: self.collection.data.delete_by_id(entity_id),
            entity_id=entity_id,
        )
        if not deleted:
            logger.debug(f"{entity_id} was not present in {self.name}")

    async def query(
        self,
        vector: Sequence[float],
        limit: int,
        predicates: Optional[List[Predicate]] = None,
    ) -> List[IndexHit]:
        """
        Nearest-neighbour search restricted by conjunctive predicates.

        Args:
            vector: Query vector
            limit: Maximum number of hits
            predicates: Equality/range predicates on metadata

        Returns:
            Hits ordered by ascending cosine distance, ties broken by id
        """
        where_filter = build_filter(predicates)
        query_vector = [float(v) for v in vector]

        response = await self._run(
            "query",
            lambda: self.collection.query.near_vector(
                near_vector=query_vector,
                limit=limit,
                filters=where_filter,
                return_properties=self._return_properties,
                return_metadata=MetadataQuery(distance=True),
            ),
        )

        hits = []
        for obj in response.objects:
            metadata = _metadata(obj.properties)
            document = metadata.pop(DOCUMENT_PROPERTY, None)
            distance = obj.metadata.distance if obj.metadata.distance is not None else 0.0
            hits.append(
                IndexHit(
                    id=str(obj.uuid),
                    distance=distance,
                    metadata=metadata,
                    document=document,
                )
            )

        hits.sort(key=lambda hit: (hit.distance, hit.id))
        logger.info(f"Query on {self.name} returned {len(hits)} hits")
        return hits

    async def list_ids(self) -> List[str]:
        return await self._run(
            "list_ids",
            lambda: [str(obj.uuid) for obj in self.collection.iterator()],
        )

    async def count(self) -> int:
        result = await self._run(
            "count", lambda: self.collection.aggregate.over_all(total_count=True)
        )
        return result.total_count or 0

    async def ping(self) -> bool:
        """Check that Weaviate is ready and the collection exists."""
        return await self._run(
            "ping",
            lambda: self.client.is_ready() and self.client.collections.exists(self.name),
        )

    def close(self) -> None:
        """Indexes share the client; the service container closes it."""
