"""Session-scoped persistence gateway used by long-lived components."""

from __future__ import annotations

from typing import Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import DesignRecord
from .service import DesignService


class DesignGateway(Protocol):
    async def save_design(self, record: DesignRecord) -> DesignRecord:
        ...

    async def list_designs(self, owner_id: str) -> Sequence[DesignRecord]:
        ...


class SqlDesignGateway:
    """Opens one session per call so callers never hold a session across awaits."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save_design(self, record: DesignRecord) -> DesignRecord:
        async with self._session_factory() as session:
            saved = await DesignService.with_session(session).save_design(record)
            await session.commit()
            return saved

    async def list_designs(self, owner_id: str) -> list[DesignRecord]:
        async with self._session_factory() as session:
            return await DesignService.with_session(session).list_designs(owner_id)
