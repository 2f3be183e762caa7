"""API models for the job-candidate matching service."""

from .schemas import (
    BulkSyncResponse,
    CandidateMatch,
    CandidateMatchFilters,
    CandidateMatchResponse,
    CandidateRecord,
    CandidateSummary,
    EntityType,
    Equals,
    HealthResponse,
    IndexedDocument,
    IndexHealth,
    IndexHit,
    JobMatch,
    JobMatchFilters,
    JobMatchResponse,
    JobRecord,
    JobSummary,
    Predicate,
    PruneResponse,
    Range,
    SyncFailure,
    SyncReport,
    SyncRequest,
    SyncResponse,
)

__all__ = [
    "EntityType",
    "CandidateRecord",
    "JobRecord",
    "Equals",
    "Range",
    "Predicate",
    "JobMatchFilters",
    "CandidateMatchFilters",
    "IndexedDocument",
    "IndexHit",
    "JobSummary",
    "CandidateSummary",
    "JobMatch",
    "CandidateMatch",
    "JobMatchResponse",
    "CandidateMatchResponse",
    "SyncFailure",
    "SyncReport",
    "SyncRequest",
    "SyncResponse",
    "BulkSyncResponse",
    "PruneResponse",
    "IndexHealth",
    "HealthResponse",
]
