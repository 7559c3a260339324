"""Repository protocol for the tokenization job journal."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from ownnest.db.models import TokenizationJob as TokenizationJobModel


class TokenizationJobRepository(Protocol):
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
    ) -> TokenizationJobModel:
        ...

    async def list_jobs(self, owner_id: str, limit: int, offset: int) -> Sequence[TokenizationJobModel]:
        ...

    async def list_by_status(self, statuses: Sequence[str]) -> Sequence[TokenizationJobModel]:
        ...
