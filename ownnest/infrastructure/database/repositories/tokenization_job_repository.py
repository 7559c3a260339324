"""SQLAlchemy implementation for TokenizationJobRepository"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import desc, select

from ownnest.db.models import TokenizationJob
from ownnest.domain.common.repository import AsyncRepository


class SqlTokenizationJobRepository(AsyncRepository[TokenizationJob]):
    async def upsert(
        self,
        *,
        job_id: str,
        owner_id: str,
        status: str,
        design_count: int,
        payload_sha256: str | None,
        account_address: str | None,
        program_id: str | None,
        signature: str | None,
        error_kind: str | None,
        error_message: str | None,
        attempts: int,
        created_at: datetime,
        updated_at: datetime,
    ) -> TokenizationJob:
        job = await self.session.get(TokenizationJob, job_id)
        if job is None:
            job = TokenizationJob(id=job_id, owner_id=owner_id, created_at=created_at)
            self.session.add(job)
        job.status = status
        job.design_count = design_count
        job.payload_sha256 = payload_sha256
        job.account_address = account_address
        job.program_id = program_id
        job.signature = signature
        job.error_kind = error_kind
        job.error_message = error_message
        job.attempts = attempts
        job.updated_at = updated_at
        await self.session.flush()
        return job

    async def list_jobs(self, owner_id: str, limit: int, offset: int) -> Sequence[TokenizationJob]:
        stmt = (
            select(TokenizationJob)
            .where(TokenizationJob.owner_id == owner_id)
            .order_by(desc(TokenizationJob.created_at), desc(TokenizationJob.updated_at))
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_by_status(self, statuses: Sequence[str]) -> Sequence[TokenizationJob]:
        stmt = (
            select(TokenizationJob)
            .where(TokenizationJob.status.in_(list(statuses)))
            .order_by(TokenizationJob.created_at)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
