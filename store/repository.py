"""
Read-only access to candidate and job records.

SQLAlchemy sessions are synchronous, so each call opens its own session
inside the default executor and converts rows to pydantic records before the
session closes.
"""

import asyncio
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from api.errors import ExternalServiceError
from api.models.schemas import CandidateRecord, JobRecord

from .models import Candidate, JobPosition

logger = logging.getLogger(__name__)


class SqlAlchemyStore:
    """Relational store backed by SQLAlchemy. Never writes."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def _run(self, operation: str, fn, entity_id: Optional[str] = None):
        def _in_session():
            with self.session_factory() as session:
                return fn(session)

        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, _in_session)
        except SQLAlchemyError as e:
            logger.error(f"Relational store {operation} failed: {e}")
            raise ExternalServiceError(
                "relational_store", operation, e, entity_id=entity_id
            )

    async def get_candidate(self, candidate_id: str) -> Optional[CandidateRecord]:
        """Look up a candidate by id. Ids are matched case-insensitively."""

        def _get(session):
            row = session.get(Candidate, candidate_id) or session.scalars(
                select(Candidate).where(func.lower(Candidate.id) == candidate_id.lower())
            ).first()
            return CandidateRecord.model_validate(row) if row is not None else None

        return await self._run("get_candidate", _get, entity_id=candidate_id)

    async def get_job(self, job_id: str) -> Optional[JobRecord]:
        def _get(session):
            row = session.get(JobPosition, job_id) or session.scalars(
                select(JobPosition).where(func.lower(JobPosition.id) == job_id.lower())
            ).first()
            return JobRecord.model_validate(row) if row is not None else None

        return await self._run("get_job", _get, entity_id=job_id)

    async def list_candidate_ids(self) -> List[str]:
        def _list(session):
            return list(session.scalars(select(Candidate.id).order_by(Candidate.id)))

        return await self._run("list_candidate_ids", _list)

    async def list_job_ids(self, status: Optional[str] = "ACTIVE") -> List[str]:
        """List job ids, restricted to ``status`` unless it is None."""

        def _list(session):
            query = select(JobPosition.id).order_by(JobPosition.id)
            if status is not None:
                query = query.where(JobPosition.status == status)
            return list(session.scalars(query))

        return await self._run("list_job_ids", _list)
