"""Durable record of tokenization job transitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ownnest.db.models import TokenizationJob as TokenizationJobModel
from ownnest.infrastructure.database.repositories.tokenization_job_repository import SqlTokenizationJobRepository

from .errors import ErrorKind
from .models import JobError, JobStatus, LedgerAccountHandle, TokenizationJob
from .repository import TokenizationJobRepository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TokenizationJobService:
    repository: TokenizationJobRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "TokenizationJobService":
        return cls(SqlTokenizationJobRepository(session))

    async def save(self, job: TokenizationJob) -> None:
        await self.repository.upsert(
            job_id=job.id,
            owner_id=job.owner_id,
            status=job.status.value,
            design_count=job.design_count,
            payload_sha256=job.payload_sha256,
            account_address=job.account.address if job.account else None,
            program_id=job.account.program_id if job.account else None,
            signature=job.signature,
            error_kind=job.error.kind.value if job.error else None,
            error_message=job.error.message if job.error else None,
            attempts=job.attempts,
            created_at=job.created_at,
            updated_at=job.updated_at,
        )

    async def list_jobs(self, owner_id: str, limit: int = 20, offset: int = 0) -> list[TokenizationJob]:
        models = await self.repository.list_jobs(owner_id, limit, offset)
        return [self._to_job(model) for model in models]

    async def list_unfinished(self) -> list[TokenizationJob]:
        statuses = [status.value for status in JobStatus if not status.is_terminal]
        models = await self.repository.list_by_status(statuses)
        return [self._to_job(model) for model in models]

    @staticmethod
    def _to_job(model: TokenizationJobModel) -> TokenizationJob:
        """Rebuild a read-only summary; the design snapshot is not stored."""
        account = None
        if model.account_address:
            account = LedgerAccountHandle(address=model.account_address, program_id=model.program_id or "")
        error = None
        if model.error_kind:
            error = JobError(kind=ErrorKind(model.error_kind), message=model.error_message or "")
        return TokenizationJob(
            id=model.id,
            owner_id=model.owner_id,
            status=JobStatus(model.status),
            account=account,
            signature=model.signature,
            error=error,
            attempts=model.attempts,
            design_count=model.design_count,
            payload_sha256=model.payload_sha256,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


class TokenizationJournal:
    """Writes job state through short-lived sessions.

    A failed write is logged and does not interrupt the job; the in-memory
    registry stays authoritative for in-flight jobs.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(self, job: TokenizationJob) -> None:
        try:
            async with self._session_factory() as session:
                await TokenizationJobService.with_session(session).save(job)
                await session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to journal job %s (%s) for owner %s", job.id, job.status.value, job.owner_id)

    async def latest(self, owner_id: str) -> TokenizationJob | None:
        jobs = await self.history(owner_id, limit=1)
        return jobs[0] if jobs else None

    async def history(self, owner_id: str, limit: int = 20, offset: int = 0) -> list[TokenizationJob]:
        async with self._session_factory() as session:
            return await TokenizationJobService.with_session(session).list_jobs(owner_id, limit, offset)

    async def unfinished(self) -> list[TokenizationJob]:
        """Jobs whose last journaled status is not terminal, oldest first."""
        async with self._session_factory() as session:
            return await TokenizationJobService.with_session(session).list_unfinished()


__all__ = ["TokenizationJobService", "TokenizationJournal"]
