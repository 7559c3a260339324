"""Repository protocol for design persistence."""

from __future__ import annotations

from typing import Protocol, Sequence

from ownnest.db.models import Design as DesignModel


class DesignRepository(Protocol):
    async def create(
        self,
        *,
        owner_id: str,
        title: str,
        color: str,
        fabric: str,
        buttons: str,
        image_url: str,
    ) -> DesignModel:
        ...

    async def list_by_owner(self, owner_id: str) -> Sequence[DesignModel]:
        ...

    async def count_by_owner(self, owner_id: str) -> int:
        ...
