"""SQLAlchemy implementation for DesignRepository"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import func, select

from ownnest.db.models import Design
from ownnest.domain.common.repository import AsyncRepository


class SqlDesignRepository(AsyncRepository[Design]):
    async def create(
        self,
        *,
        owner_id: str,
        title: str,
        color: str,
        fabric: str,
        buttons: str,
        image_url: str,
    ) -> Design:
        design = Design(
            owner_id=owner_id,
            title=title,
            color=color,
            fabric=fabric,
            buttons=buttons,
            image_url=image_url,
        )
        await self.add(design)
        await self.session.refresh(design)
        return design

    async def list_by_owner(self, owner_id: str) -> Sequence[Design]:
        stmt = select(Design).where(Design.owner_id == owner_id).order_by(Design.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_by_owner(self, owner_id: str) -> int:
        stmt = select(func.count()).select_from(Design).where(Design.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
