"""
Data models for the job-candidate matching service.

This module contains Pydantic models for the relational records consumed by
the sync pipeline, the filter predicates understood by the vector index, the
caller-facing match filters, and the match/sync/health responses.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from api.errors import UnknownEnumValue
from api.services.enums import AVAILABILITY, EMPLOYMENT_TYPE, EXPERIENCE_LEVEL

MetadataValue = Union[str, int, float, bool]


class EntityType(str, Enum):
    """Entity types that own a vector index."""

    CANDIDATES = "candidates"
    JOBS = "jobs"

    @property
    def singular(self) -> str:
        return "candidate" if self is EntityType.CANDIDATES else "job"

    @property
    def opposite(self) -> "EntityType":
        if self is EntityType.CANDIDATES:
            return EntityType.JOBS
        return EntityType.CANDIDATES


# ---------------------------------------------------------------------------
# Relational records (enum columns in storage form, e.g. "IMMEDIATE")
# ---------------------------------------------------------------------------


class CandidateRecord(BaseModel):
    """Candidate row as read from the relational store."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Candidate UUID")
    first_name: str = Field(..., description="First name")
    last_name: str = Field(..., description="Last name")
    email: str = Field(..., description="Email address")
    phone: Optional[str] = Field(None, description="Phone number")
    skills: List[str] = Field(default_factory=list, description="Skills")
    experience: int = Field(..., description="Years of experience")
    location: str = Field(..., description="Location")
    availability: str = Field(..., description="Availability (storage form)")
    salary_expectation: Optional[int] = Field(None, description="Salary expectation")
    resume_url: Optional[str] = Field(None, description="Resume URL")

    @field_validator("skills", mode="before")
    @classmethod
    def _none_skills(cls, value):
        return value or []


class JobRecord(BaseModel):
    """Job position row as read from the relational store."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Job UUID")
    title: str = Field(..., description="Job title")
    company: str = Field(..., description="Employer")
    description: str = Field(..., description="Free-text description")
    required_skills: List[str] = Field(default_factory=list)
    preferred_skills: List[str] = Field(default_factory=list)
    experience_level: str = Field(..., description="Experience level (storage form)")
    location: str = Field(..., description="Location")
    remote_ok: bool = Field(False, description="Whether remote work is allowed")
    salary_min: Optional[int] = Field(None, description="Minimum salary")
    salary_max: Optional[int] = Field(None, description="Maximum salary")
    employment_type: str = Field(..., description="Employment type (storage form)")
    status: str = Field("ACTIVE", description="Job status (storage form)")

    @field_validator("required_skills", "preferred_skills", mode="before")
    @classmethod
    def _none_skills(cls, value):
        return value or []


# ---------------------------------------------------------------------------
# Index predicates
# ---------------------------------------------------------------------------


class Equals(BaseModel):
    """Metadata field must equal ``value``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["eq"] = "eq"
    field: str
    value: MetadataValue

    def matches(self, metadata: Dict[str, Any]) -> bool:
        return self.field in metadata and metadata[self.field] == self.value


class Range(BaseModel):
    """Metadata field must lie within the inclusive bounds that are set."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["range"] = "range"
    field: str
    gte: Optional[float] = None
    lte: Optional[float] = None

    @model_validator(mode="after")
    def _has_bound(self) -> "Range":
        if self.gte is None and self.lte is None:
            raise ValueError(f"Range on {self.field} needs at least one bound")
        return self

    def matches(self, metadata: Dict[str, Any]) -> bool:
        value = metadata.get(self.field)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if self.gte is not None and value < self.gte:
            return False
        if self.lte is not None and value > self.lte:
            return False
        return True


Predicate = Union[Equals, Range]


def _enum_value(mapping, value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return mapping.normalize(value)
    except UnknownEnumValue as e:
        raise ValueError(e.message)


class JobMatchFilters(BaseModel):
    """Filters applied to the job index when matching jobs for a candidate."""

    model_config = ConfigDict(extra="forbid")

    location: Optional[str] = Field(None, description="Exact job location")
    remote_ok: Optional[bool] = Field(None, description="Remote work flag")
    experience_level: Optional[str] = Field(None, description="Experience level")
    employment_type: Optional[str] = Field(None, description="Employment type")
    salary_min: Optional[int] = Field(
        None, ge=0, description="Candidate minimum; job salary_max must be >= this"
    )
    salary_max: Optional[int] = Field(
        None, ge=0, description="Candidate maximum; job salary_min must be <= this"
    )

    @field_validator("experience_level")
    @classmethod
    def _experience_level(cls, value):
        return _enum_value(EXPERIENCE_LEVEL, value)

    @field_validator("employment_type")
    @classmethod
    def _employment_type(cls, value):
        return _enum_value(EMPLOYMENT_TYPE, value)

    @model_validator(mode="after")
    def _salary_bounds(self) -> "JobMatchFilters":
        if (
            self.salary_min is not None
            and self.salary_max is not None
            and self.salary_min > self.salary_max
        ):
            raise ValueError("salary_min must be less than or equal to salary_max")
        return self

    def to_predicates(self) -> List[Predicate]:
        """Translate into job index predicates (salary bounds are an overlap test)."""
        predicates: List[Predicate] = []
        if self.location:
            predicates.append(Equals(field="location", value=self.location))
        if self.remote_ok is not None:
            predicates.append(Equals(field="remote_ok", value=self.remote_ok))
        if self.experience_level:
            predicates.append(
                Equals(field="experience_level", value=self.experience_level)
            )
        if self.employment_type:
            predicates.append(Equals(field="employment_type", value=self.employment_type))
        if self.salary_min is not None:
            predicates.append(Range(field="salary_max", gte=self.salary_min))
        if self.salary_max is not None:
            predicates.append(Range(field="salary_min", lte=self.salary_max))
        return predicates


class CandidateMatchFilters(BaseModel):
    """Filters applied to the candidate index when matching candidates for a job."""

    model_config = ConfigDict(extra="forbid")

    location: Optional[str] = Field(None, description="Exact candidate location")
    availability: Optional[str] = Field(None, description="Availability state")
    min_experience: Optional[int] = Field(None, ge=0, description="Minimum years")
    max_experience: Optional[int] = Field(None, ge=0, description="Maximum years")
    max_salary_expectation: Optional[int] = Field(
        None, ge=0, description="Upper bound on salary expectation"
    )

    @field_validator("availability")
    @classmethod
    def _availability(cls, value):
        return _enum_value(AVAILABILITY, value)

    @model_validator(mode="after")
    def _experience_bounds(self) -> "CandidateMatchFilters":
        if (
            self.min_experience is not None
            and self.max_experience is not None
            and self.min_experience > self.max_experience
        ):
            raise ValueError("min_experience must be less than or equal to max_experience")
        return self

    def to_predicates(self) -> List[Predicate]:
        """Translate into candidate index predicates."""
        predicates: List[Predicate] = []
        if self.location:
            predicates.append(Equals(field="location", value=self.location))
        if self.availability:
            predicates.append(Equals(field="availability", value=self.availability))
        if self.min_experience is not None or self.max_experience is not None:
            predicates.append(
                Range(
                    field="experience",
                    gte=self.min_experience,
                    lte=self.max_experience,
                )
            )
        if self.max_salary_expectation is not None:
            predicates.append(
                Range(field="salary_expectation", lte=self.max_salary_expectation)
            )
        return predicates


# ---------------------------------------------------------------------------
# Index entries and match results
# ---------------------------------------------------------------------------


class IndexedDocument(BaseModel):
    """Stored canonical text and metadata for one entity."""

    id: str
    document: str
    metadata: Dict[str, MetadataValue]


class IndexHit(BaseModel):
    """One nearest-neighbour result from a vector index query."""

    id: str
    distance: float
    metadata: Dict[str, MetadataValue]
    document: Optional[str] = None


class JobSummary(BaseModel):
    """Job reconstructed from index metadata."""

    id: str
    title: str
    company: str
    required_skills: List[str]
    preferred_skills: List[str]
    experience_level: str
    location: str
    remote_ok: bool
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    employment_type: str


class CandidateSummary(BaseModel):
    """Candidate reconstructed from index metadata."""

    id: str
    first_name: str
    last_name: str
    email: str
    skills: List[str]
    experience: int
    location: str
    availability: str
    salary_expectation: Optional[int] = None


class JobMatch(BaseModel):
    """Single job match with similarity score."""

    id: str = Field(..., description="Job id")
    score: float = Field(
        ..., description="Similarity score, 1 - cosine distance, in [-1, 1]"
    )
    distance: float = Field(..., description="Cosine distance")
    metadata: Dict[str, MetadataValue] = Field(..., description="Raw index metadata")
    job: JobSummary


class CandidateMatch(BaseModel):
    """Single candidate match with similarity score."""

    id: str = Field(..., description="Candidate id")
    score: float = Field(
        ..., description="Similarity score, 1 - cosine distance, in [-1, 1]"
    )
    distance: float = Field(..., description="Cosine distance")
    metadata: Dict[str, MetadataValue] = Field(..., description="Raw index metadata")
    candidate: CandidateSummary


class MatchResponse(BaseModel):
    """Base match response with metadata."""

    source_id: str = Field(..., description="Entity the matches were computed for")
    total_results: int = Field(..., description="Number of returned matches")
    query_time_ms: float = Field(..., description="Query execution time in ms")


class JobMatchResponse(MatchResponse):
    results: List[JobMatch] = Field(..., description="Ranked matching jobs")


class CandidateMatchResponse(MatchResponse):
    results: List[CandidateMatch] = Field(..., description="Ranked matching candidates")


# ---------------------------------------------------------------------------
# Sync and health
# ---------------------------------------------------------------------------


class SyncFailure(BaseModel):
    """A record that could not be synced during a batch."""

    entity_id: str
    operation: str
    error: str


class SyncReport(BaseModel):
    """Outcome of a batch sync. Success means every record was attempted."""

    entity_type: EntityType
    attempted: int = 0
    synced: List[str] = Field(default_factory=list)
    failed: List[SyncFailure] = Field(default_factory=list)
    duration_ms: float = 0.0


class SyncRequest(BaseModel):
    """Request body for the bulk sync endpoint."""

    model_config = ConfigDict(extra="forbid")

    type: Literal["candidates", "jobs", "all"] = Field(
        ..., description="Which entity types to sync"
    )


class SyncResponse(BaseModel):
    """Response for single-entity sync and removal."""

    entity_type: EntityType
    entity_id: str
    message: str


class BulkSyncResponse(BaseModel):
    """Response for the bulk sync endpoint."""

    type: str
    reports: List[SyncReport]


class PruneResponse(BaseModel):
    entity_type: EntityType
    removed: List[str]


class IndexHealth(BaseModel):
    ready: bool
    count: Optional[int] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Matching system health. The embedding model is never called."""

    status: Literal["online", "offline"]
    indexes: Dict[str, IndexHealth]
    embedding_backend: str
    embedding_model_loaded: bool
    timestamp: str
