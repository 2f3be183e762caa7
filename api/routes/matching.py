"""
Matching endpoints.

This module exposes the match queries, sync operations and health check of
the matching core. Handlers are thin: they build filters from query
parameters, call the injected services and translate the error taxonomy
into HTTP responses.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from api.errors import (
    ExternalServiceError,
    MatchingError,
    NotFoundInStore,
    NotSyncedInIndex,
    ValidationError,
)
from api.models import (
    BulkSyncResponse,
    CandidateMatchResponse,
    EntityType,
    HealthResponse,
    JobMatchResponse,
    PruneResponse,
    SyncRequest,
    SyncResponse,
)
from api.services.container import ServiceContainer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matching", tags=["Matching"])


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def to_http_exception(error: MatchingError) -> HTTPException:
    """
    Map a matching error onto an HTTP status and error code.

    Not found and not synced are both 404 but carry different codes so that
    callers can decide whether to create the record or just sync it.
    """
    if isinstance(error, ValidationError):
        return HTTPException(status_code=422, detail=error.to_dict())

    if isinstance(error, NotSyncedInIndex):
        detail = error.to_dict()
        detail["code"] = f"{error.entity_type.upper()}_NOT_SYNCED"
        detail["message"] = (
            f"{error.entity_type.capitalize()} not found in matching system. "
            f"Please sync the {error.entity_type} first."
        )
        return HTTPException(status_code=404, detail=detail)

    if isinstance(error, NotFoundInStore):
        detail = error.to_dict()
        detail["code"] = f"{error.entity_type.upper()}_NOT_FOUND"
        return HTTPException(status_code=404, detail=detail)

    if isinstance(error, ExternalServiceError):
        detail = error.to_dict()
        detail["service"] = error.service
        return HTTPException(status_code=502, detail=detail)

    return HTTPException(status_code=500, detail=error.to_dict())


def get_job_filters(
    location: Optional[str] = Query(None, description="Exact job location"),
    remote_ok: Optional[bool] = Query(None, description="Remote work flag"),
    experience_level: Optional[str] = Query(
        None, description="entry, mid, senior or lead"
    ),
    employment_type: Optional[str] = Query(
        None, description="full_time, part_time, contract or internship"
    ),
    salary_min: Optional[int] = Query(
        None, ge=0, description="Only jobs whose maximum salary is at least this"
    ),
    salary_max: Optional[int] = Query(
        None, ge=0, description="Only jobs whose minimum salary is at most this"
    ),
) -> dict:
    """Collect job match filters from query parameters, dropping unset ones."""
    filters = {
        "location": location.strip() if location else None,
        "remote_ok": remote_ok,
        "experience_level": experience_level,
        "employment_type": employment_type,
        "salary_min": salary_min,
        "salary_max": salary_max,
    }
    return {key: value for key, value in filters.items() if value is not None}


def get_candidate_filters(
    location: Optional[str] = Query(None, description="Exact candidate location"),
    availability: Optional[str] = Query(
        None, description="immediate, within_week, within_month or not_available"
    ),
    min_experience: Optional[int] = Query(None, ge=0, description="Minimum years"),
    max_experience: Optional[int] = Query(None, ge=0, description="Maximum years"),
    max_salary_expectation: Optional[int] = Query(
        None, ge=0, description="Upper bound on salary expectation"
    ),
) -> dict:
    """Collect candidate match filters from query parameters, dropping unset ones."""
    filters = {
        "location": location.strip() if location else None,
        "availability": availability,
        "min_experience": min_experience,
        "max_experience": max_experience,
        "max_salary_expectation": max_salary_expectation,
    }
    return {key: value for key, value in filters.items() if value is not None}


@router.get("/health", response_model=HealthResponse)
async def matching_health(services: ServiceContainer = Depends(get_services)):
    """
    Report index reachability without calling the embedding model.

    Returns 503 when either index is unreachable.
    """
    health = await services.matching.health()
    if health.status != "online":
        logger.warning(f"Matching system health check failed: {health.indexes}")
        return JSONResponse(status_code=503, content=health.model_dump(mode="json"))
    return health


@router.get("/candidates/{candidate_id}/jobs", response_model=JobMatchResponse)
async def find_matching_jobs(
    candidate_id: str,
    limit: int = Query(
        10, ge=1, description="Number of jobs to return, up to MATCH_MAX_LIMIT"
    ),
    filters: dict = Depends(get_job_filters),
    services: ServiceContainer = Depends(get_services),
):
    """
    Find jobs matching a synced candidate.

    Raises:
        HTTPException: 404 if the candidate is not synced, 422 on invalid
        input, 502 if the embedding model or index fails
    """
    start_time = time.time()
    logger.info(
        f"Matching jobs for candidate {candidate_id}, limit={limit}, filters={filters}"
    )

    try:
        matches = await services.matching.match_jobs_for_candidate(
            candidate_id, limit, filters
        )
    except MatchingError as e:
        logger.error(f"Job matching for candidate {candidate_id} failed: {e}")
        raise to_http_exception(e)

    return JobMatchResponse(
        source_id=candidate_id,
        results=matches,
        total_results=len(matches),
        query_time_ms=(time.time() - start_time) * 1000,
    )


@router.get("/jobs/{job_id}/candidates", response_model=CandidateMatchResponse)
async def find_matching_candidates(
    job_id: str,
    limit: int = Query(
        10, ge=1, description="Number of candidates to return, up to MATCH_MAX_LIMIT"
    ),
    filters: dict = Depends(get_candidate_filters),
    services: ServiceContainer = Depends(get_services),
):
    """
    Find candidates matching a synced job.

    Raises:
        HTTPException: 404 if the job is not synced, 422 on invalid input,
        502 if the embedding model or index fails
    """
    start_time = time.time()
    logger.info(f"Matching candidates for job {job_id}, limit={limit}, filters={filters}")

    try:
        matches = await services.matching.match_candidates_for_job(job_id, limit, filters)
    except MatchingError as e:
        logger.error(f"Candidate matching for job {job_id} failed: {e}")
        raise to_http_exception(e)

    return CandidateMatchResponse(
        source_id=job_id,
        results=matches,
        total_results=len(matches),
        query_time_ms=(time.time() - start_time) * 1000,
    )


async def _sync_one(
    services: ServiceContainer, entity_type: EntityType, entity_id: str
) -> SyncResponse:
    try:
        await services.sync.sync_one(entity_type, entity_id)
    except MatchingError as e:
        logger.error(f"Sync of {entity_type.singular} {entity_id} failed: {e}")
        raise to_http_exception(e)

    return SyncResponse(
        entity_type=entity_type,
        entity_id=entity_id,
        message=f"{entity_type.singular.capitalize()} synced to matching system successfully",
    )


@router.post("/sync/candidates/{candidate_id}", response_model=SyncResponse)
async def sync_candidate(
    candidate_id: str, services: ServiceContainer = Depends(get_services)
):
    """Sync one candidate from the relational store into the candidate index."""
    return await _sync_one(services, EntityType.CANDIDATES, candidate_id)


@router.post("/sync/jobs/{job_id}", response_model=SyncResponse)
async def sync_job(job_id: str, services: ServiceContainer = Depends(get_services)):
    """Sync one job from the relational store into the job index."""
    return await _sync_one(services, EntityType.JOBS, job_id)


@router.post("/sync", response_model=BulkSyncResponse)
async def sync_data(
    request: SyncRequest, services: ServiceContainer = Depends(get_services)
):
    """
    Bulk sync candidates, active jobs, or both.

    Individual record failures are reported in the response, not raised.
    """
    logger.info(f"Bulk sync requested for {request.type}")

    try:
        if request.type == "all":
            reports = await services.sync.sync_everything()
        else:
            reports = [await services.sync.sync_all(EntityType(request.type))]
    except MatchingError as e:
        logger.error(f"Bulk sync of {request.type} failed: {e}")
        raise to_http_exception(e)

    return BulkSyncResponse(type=request.type, reports=reports)


@router.delete("/sync/{entity_type}/{entity_id}", response_model=SyncResponse)
async def remove_entity(
    entity_type: EntityType,
    entity_id: str,
    services: ServiceContainer = Depends(get_services),
):
    """Remove an entity from its vector index. The relational record is untouched."""
    try:
        await services.sync.remove(entity_type, entity_id)
    except MatchingError as e:
        logger.error(f"Removal of {entity_type.singular} {entity_id} failed: {e}")
        raise to_http_exception(e)

    return SyncResponse(
        entity_type=entity_type,
        entity_id=entity_id,
        message=f"{entity_type.singular.capitalize()} removed from matching system",
    )


@router.post("/prune/{entity_type}", response_model=PruneResponse)
async def prune_index(
    entity_type: EntityType, services: ServiceContainer = Depends(get_services)
):
    """Remove index entries whose relational record is gone or no longer searchable."""
    try:
        removed = await services.sync.prune(entity_type)
    except MatchingError as e:
        logger.error(f"Pruning {entity_type.value} failed: {e}")
        raise to_http_exception(e)

    return PruneResponse(entity_type=entity_type, removed=removed)
