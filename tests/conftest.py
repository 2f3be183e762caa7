"""
Shared fixtures: a temporary SQLite relational store, in-memory vector
indexes and a deterministic hashing embedder, wired into a ServiceContainer.
"""

import hashlib
import re
import uuid

import numpy as np
import pytest

from api.errors import ExternalServiceError
from api.models.schemas import EntityType
from api.services.container import ServiceContainer
from index.memory import InMemoryVectorIndex
from store import (
    Base,
    Candidate,
    JobPosition,
    SqlAlchemyStore,
    create_session_factory,
    create_store_engine,
)

EMBEDDING_DIM = 64


class HashEmbedder:
    """
    Deterministic bag-of-words embedder.

    Each lowercase token increments one hashed dimension, so vectors are
    non-negative and texts sharing words have higher cosine similarity.
    Texts containing any token in ``fail_on`` raise ExternalServiceError.
    """

    backend_name = "hash"

    def __init__(self, dim: int = EMBEDDING_DIM, fail_on=()):
        self.dim = dim
        self.fail_on = {token.lower() for token in fail_on}
        self.calls = []

    async def initialize(self) -> None:
        pass

    def is_initialized(self) -> bool:
        return True

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        tokens = re.findall(r"[a-z0-9]+", text.lower())
        if self.fail_on.intersection(tokens):
            raise ExternalServiceError("embedding", "embed", RuntimeError("quota exceeded"))

        vector = np.zeros(self.dim, dtype=np.float32)
        for token in tokens:
            digest = hashlib.md5(token.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "little") % self.dim] += 1.0
        return vector


def new_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def session_factory(tmp_path):
    engine = create_store_engine(f"sqlite:///{tmp_path / 'matching.db'}")
    Base.metadata.create_all(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def add_candidate(session_factory):
    """Insert a candidate row and return its id."""

    def _add(**overrides) -> str:
        values = {
            "id": new_id(),
            "first_name": "Ayse",
            "last_name": "Demir",
            "email": f"{uuid.uuid4().hex}@example.com",
            "skills": ["Go", "SQL"],
            "experience": 5,
            "location": "Istanbul",
            "availability": "IMMEDIATE",
            "salary_expectation": None,
        }
        values.update(overrides)
        with session_factory() as session:
            session.add(Candidate(**values))
            session.commit()
        return values["id"]

    return _add


@pytest.fixture
def add_job(session_factory):
    """Insert a job row and return its id."""

    def _add(**overrides) -> str:
        values = {
            "id": new_id(),
            "title": "Backend Engineer",
            "company": "Acme",
            "description": "Build Go services backed by SQL databases",
            "required_skills": ["Go"],
            "preferred_skills": [],
            "experience_level": "MID",
            "location": "Istanbul",
            "remote_ok": True,
            "salary_min": None,
            "salary_max": None,
            "employment_type": "FULL_TIME",
            "status": "ACTIVE",
        }
        values.update(overrides)
        with session_factory() as session:
            session.add(JobPosition(**values))
            session.commit()
        return values["id"]

    return _add


@pytest.fixture
def store(session_factory):
    return SqlAlchemyStore(session_factory)


@pytest.fixture
def embedder():
    return HashEmbedder()


@pytest.fixture
def indexes():
    return {
        EntityType.CANDIDATES: InMemoryVectorIndex("Candidate"),
        EntityType.JOBS: InMemoryVectorIndex("Job"),
    }


@pytest.fixture
def services(store, embedder, indexes):
    return ServiceContainer(store, embedder, indexes, sync_concurrency=2)
