"""Tests for the in-memory vector index."""

import asyncio

import pytest

from api.errors import ExternalServiceError
from api.models.schemas import Equals, Range
from index.memory import InMemoryVectorIndex


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def index():
    index = InMemoryVectorIndex("Job")
    run(index.upsert("a", [1.0, 0.0], {"location": "Istanbul", "remote_ok": True, "salary_max": 90000}, "doc a"))
    run(index.upsert("b", [0.0, 1.0], {"location": "Ankara", "remote_ok": True, "salary_max": 70000}, "doc b"))
    run(index.upsert("c", [1.0, 1.0], {"location": "Istanbul", "remote_ok": False, "salary_max": 0}, "doc c"))
    return index


def test_get_returns_document_and_metadata(index):
    stored = run(index.get("a"))
    assert stored.document == "doc a"
    assert stored.metadata["location"] == "Istanbul"
    assert run(index.get("missing")) is None


def test_upsert_replaces_existing_entry(index):
    run(index.upsert("a", [0.0, 1.0], {"location": "Izmir"}, "new doc"))

    stored = run(index.get("a"))
    assert stored.document == "new doc"
    assert stored.metadata == {"location": "Izmir"}
    assert run(index.count()) == 3


def test_delete_is_idempotent(index):
    run(index.delete("a"))
    run(index.delete("a"))
    assert run(index.get("a")) is None
    assert run(index.list_ids()) == ["b", "c"]


def test_query_orders_by_ascending_distance(index):
    hits = run(index.query([1.0, 0.0], 3))

    assert [hit.id for hit in hits] == ["a", "c", "b"]
    distances = [hit.distance for hit in hits]
    assert distances == sorted(distances)
    assert hits[0].distance == pytest.approx(0.0, abs=1e-6)


def test_query_respects_limit(index):
    assert len(run(index.query([1.0, 0.0], 1))) == 1


def test_predicates_are_conjunctive(index):
    hits = run(
        index.query(
            [1.0, 0.0],
            10,
            [
                Equals(field="location", value="Istanbul"),
                Equals(field="remote_ok", value=True),
            ],
        )
    )
    assert [hit.id for hit in hits] == ["a"]


def test_range_predicates(index):
    hits = run(index.query([1.0, 0.0], 10, [Range(field="salary_max", gte=80000)]))
    assert [hit.id for hit in hits] == ["a"]


def test_ties_are_broken_by_id():
    index = InMemoryVectorIndex("Candidate")
    for entity_id in ["z", "m", "a"]:
        run(index.upsert(entity_id, [1.0, 0.0], {}, entity_id))

    first = [hit.id for hit in run(index.query([1.0, 0.0], 3))]
    second = [hit.id for hit in run(index.query([1.0, 0.0], 3))]
    assert first == second == ["a", "m", "z"]


def test_dimension_is_fixed_after_first_upsert(index):
    with pytest.raises(ExternalServiceError):
        run(index.upsert("d", [1.0, 0.0, 0.0], {}, "doc d"))
