"""Tests for design records and their persistence gateway."""

import pytest

from ownnest.db.models import Design
from ownnest.domain.designs import DesignRecord, DesignService, DesignValidationError

from .conftest import make_design


class TestDesignRecord:
    def test_fields_are_trimmed(self) -> None:
        record = make_design(title="  Oxford  ")

        assert record.title == "Oxford"

    def test_blank_fields_are_reported(self) -> None:
        with pytest.raises(DesignValidationError) as excinfo:
            DesignRecord.create(owner_id="alice", title=" ", color="", fabric="linen", buttons="horn", image_url=None)

        assert excinfo.value.fields == ["title", "color", "image_url"]


class TestSqlDesignGateway:
    async def test_list_in_insertion_order(self, gateway) -> None:
        for n in (2, 1, 3):
            await gateway.save_design(make_design("alice", n))

        records = await gateway.list_designs("alice")

        assert [record.title for record in records] == ["Oxford shirt 2", "Oxford shirt 1", "Oxford shirt 3"]

    async def test_scoped_by_owner(self, gateway) -> None:
        await gateway.save_design(make_design("alice", 1))
        await gateway.save_design(make_design("bob", 1))

        records = await gateway.list_designs("bob")

        assert [record.owner_id for record in records] == ["bob"]

    async def test_unknown_owner_has_no_designs(self, gateway) -> None:
        assert await gateway.list_designs("nobody") == []

    async def test_save_returns_stored_record(self, gateway) -> None:
        saved = await gateway.save_design(make_design("alice", 7))

        assert saved == make_design("alice", 7)

    async def test_save_revalidates_direct_construction(self, gateway) -> None:
        record = DesignRecord(owner_id="alice", title="", color="c", fabric="f", buttons="b", image_url="u")

        with pytest.raises(DesignValidationError):
            await gateway.save_design(record)

        assert await gateway.list_designs("alice") == []

    async def test_invalid_stored_row_fails_validation(self, gateway, session_factory) -> None:
        async with session_factory() as session:
            session.add(Design(owner_id="alice", title="   ", color="c", fabric="f", buttons="b", image_url="u"))
            await session.commit()

        with pytest.raises(DesignValidationError):
            await gateway.list_designs("alice")


class TestDesignService:
    async def test_count(self, session_factory, gateway) -> None:
        await gateway.save_design(make_design("alice", 1))
        await gateway.save_design(make_design("alice", 2))

        async with session_factory() as session:
            assert await DesignService.with_session(session).count_designs("alice") == 2
