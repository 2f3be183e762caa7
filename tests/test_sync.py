"""Tests for the sync orchestrator."""

import asyncio

import numpy as np
import pytest

from api.errors import ExternalServiceError, NotFoundInStore, ValidationError
from api.models.schemas import EntityType
from api.services.container import ServiceContainer
from tests.conftest import HashEmbedder, new_id


def run(coro):
    return asyncio.run(coro)


def test_sync_one_writes_text_and_metadata(services, indexes, add_candidate):
    candidate_id = add_candidate(salary_expectation=80000)

    written = run(services.sync.sync_one(EntityType.CANDIDATES, candidate_id))

    stored = run(indexes[EntityType.CANDIDATES].get(candidate_id))
    assert stored.document == written.document
    assert stored.document.startswith("Ayse Demir - Skills: Go, SQL")
    assert stored.metadata["salary_expectation"] == 80000
    assert stored.metadata["availability"] == "immediate"


def test_sync_one_is_idempotent(services, indexes, add_job):
    job_id = add_job()
    index = indexes[EntityType.JOBS]

    run(services.sync.sync_one(EntityType.JOBS, job_id))
    first = run(index.get(job_id))
    first_vector = index._entries[job_id][0].copy()

    run(services.sync.sync_one("jobs", job_id))
    second = run(index.get(job_id))

    assert first.document == second.document
    assert first.metadata == second.metadata
    assert np.array_equal(first_vector, index._entries[job_id][0])
    assert run(index.count()) == 1


def test_sync_one_missing_record_raises_not_found(services):
    with pytest.raises(NotFoundInStore) as excinfo:
        run(services.sync.sync_one(EntityType.CANDIDATES, new_id()))
    assert excinfo.value.operation == "sync"


def test_sync_one_rejects_malformed_id_before_any_call(services, embedder):
    with pytest.raises(ValidationError):
        run(services.sync.sync_one(EntityType.JOBS, "not-a-uuid"))
    assert embedder.calls == []


def test_sync_one_rejects_unknown_entity_type(services, add_job):
    with pytest.raises(ValidationError):
        run(services.sync.sync_one("applications", add_job()))


def test_sync_one_propagates_embedding_failure(store, indexes, add_candidate):
    candidate_id = add_candidate(first_name="Broken")
    services = ServiceContainer(store, HashEmbedder(fail_on=["broken"]), indexes)

    with pytest.raises(ExternalServiceError):
        run(services.sync.sync_one(EntityType.CANDIDATES, candidate_id))
    assert run(indexes[EntityType.CANDIDATES].get(candidate_id)) is None


def test_sync_all_continues_after_a_failure(store, indexes, add_candidate):
    good_ids = [add_candidate(first_name=name) for name in ["Ali", "Zeynep", "Mehmet"]]
    bad_id = add_candidate(first_name="Broken")
    services = ServiceContainer(
        store, HashEmbedder(fail_on=["broken"]), indexes, sync_concurrency=2
    )

    report = run(services.sync.sync_all(EntityType.CANDIDATES))

    assert report.attempted == 4
    assert report.synced == sorted(good_ids)
    assert [failure.entity_id for failure in report.failed] == [bad_id]
    assert report.failed[0].operation == "embed"
    for candidate_id in good_ids:
        assert run(indexes[EntityType.CANDIDATES].get(candidate_id)) is not None


def test_sync_all_skips_records_with_unknown_enum_values(services, indexes, add_candidate):
    good_id = add_candidate()
    bad_id = add_candidate(availability="SOMEDAY")

    report = run(services.sync.sync_all(EntityType.CANDIDATES))

    assert report.synced == [good_id]
    assert [failure.entity_id for failure in report.failed] == [bad_id]


def test_sync_all_jobs_only_indexes_active(services, indexes, add_job):
    active_id = add_job()
    add_job(status="FILLED")
    add_job(status="INACTIVE")

    report = run(services.sync.sync_all(EntityType.JOBS))

    assert report.attempted == 1
    assert run(indexes[EntityType.JOBS].list_ids()) == [active_id]


def test_sync_everything_reports_both_types(services, add_candidate, add_job):
    add_candidate()
    add_job()

    reports = run(services.sync.sync_everything())

    assert [report.entity_type for report in reports] == [
        EntityType.CANDIDATES,
        EntityType.JOBS,
    ]
    assert all(len(report.synced) == 1 for report in reports)


def test_remove_deletes_from_index_only(services, store, indexes, add_job):
    job_id = add_job()
    run(services.sync.sync_one(EntityType.JOBS, job_id))

    run(services.sync.remove(EntityType.JOBS, job_id))
    run(services.sync.remove(EntityType.JOBS, job_id))

    assert run(indexes[EntityType.JOBS].get(job_id)) is None
    assert run(store.get_job(job_id)) is not None


def test_prune_removes_orphaned_entries(services, indexes, add_job, session_factory):
    kept_id = add_job()
    closed_id = add_job()
    run(services.sync.sync_all(EntityType.JOBS))

    from store import JobPosition

    with session_factory() as session:
        session.get(JobPosition, closed_id).status = "FILLED"
        session.commit()

    orphan_id = new_id()
    run(indexes[EntityType.JOBS].upsert(orphan_id, np.ones(64), {}, "stale job"))

    removed = run(services.sync.prune(EntityType.JOBS))

    assert removed == sorted([closed_id, orphan_id])
    assert run(indexes[EntityType.JOBS].list_ids()) == [kept_id]


def test_sync_one_accepts_any_uuid_spelling(services, indexes, add_candidate):
    candidate_id = add_candidate()

    written = run(services.sync.sync_one(EntityType.CANDIDATES, candidate_id.upper()))

    assert written.id == candidate_id
    assert run(indexes[EntityType.CANDIDATES].list_ids()) == [candidate_id]

    braced = "{" + candidate_id.replace("-", "").upper() + "}"
    run(services.sync.sync_one(EntityType.CANDIDATES, braced))
    assert run(indexes[EntityType.CANDIDATES].count()) == 1


def test_upper_case_relational_ids_sync_and_survive_prune(services, indexes, add_job):
    job_id = new_id()
    add_job(id=job_id.upper())

    report = run(services.sync.sync_all(EntityType.JOBS))
    assert report.synced == [job_id]
    assert run(indexes[EntityType.JOBS].list_ids()) == [job_id]

    assert run(services.sync.prune(EntityType.JOBS)) == []
    assert run(indexes[EntityType.JOBS].list_ids()) == [job_id]
