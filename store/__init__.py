"""Relational store (read-only) for candidates and job positions."""

from .models import Base, Candidate, JobPosition
from .repository import SqlAlchemyStore
from .session import create_session_factory, create_store_engine

__all__ = [
    "Base",
    "Candidate",
    "JobPosition",
    "SqlAlchemyStore",
    "create_session_factory",
    "create_store_engine",
]
