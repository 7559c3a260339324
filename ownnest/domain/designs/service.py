"""Domain service for design records."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ownnest.infrastructure.database.repositories.design_repository import SqlDesignRepository

from .models import DesignRecord
from .repository import DesignRepository


@dataclass(slots=True)
class DesignService:
    repository: DesignRepository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "DesignService":
        return cls(SqlDesignRepository(session))

    async def save_design(self, record: DesignRecord) -> DesignRecord:
        # Re-validate: callers may build the dataclass directly.
        record = DesignRecord.create(**record.as_dict())
        model = await self.repository.create(**record.as_dict())
        return DesignRecord.from_orm(model)

    async def list_designs(self, owner_id: str) -> list[DesignRecord]:
        models = await self.repository.list_by_owner(owner_id)
        return [DesignRecord.from_orm(model) for model in models]

    async def count_designs(self, owner_id: str) -> int:
        return await self.repository.count_by_owner(owner_id)
