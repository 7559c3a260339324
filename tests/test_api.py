"""HTTP API tests against an in-process ASGI transport."""

import asyncio

import httpx
import pytest

from ownnest import __version__
from ownnest.core.container import build_container
from ownnest.main import create_app

from .conftest import make_design

DESIGN = {
    "owner_id": "alice",
    "title": "Oxford shirt",
    "color": "white",
    "fabric": "cotton",
    "buttons": "mother-of-pearl",
    "image_url": "https://img.example/alice/1.png",
}


@pytest.fixture
async def container(settings, session_factory, rpc, owner, clock):
    container = build_container(settings, session_factory=session_factory, rpc=rpc, owner=owner, sleep=clock.sleep)
    yield container
    await container.aclose()


@pytest.fixture
async def client(container):
    app = create_app(container=container)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestDesignsApi:
    async def test_create_and_list(self, client) -> None:
        first = await client.post("/api/designs", json=DESIGN)
        second = await client.post("/api/designs", json={**DESIGN, "title": "Linen shirt"})

        assert first.status_code == 201
        assert first.json() == DESIGN
        assert second.status_code == 201

        response = await client.get("/api/designs", params={"owner_id": "alice"})
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert [item["title"] for item in body["designs"]] == ["Oxford shirt", "Linen shirt"]

    async def test_missing_field_is_422(self, client) -> None:
        payload = {key: value for key, value in DESIGN.items() if key != "fabric"}

        response = await client.post("/api/designs", json=payload)

        assert response.status_code == 422

    async def test_whitespace_field_is_400(self, client) -> None:
        response = await client.post("/api/designs", json={**DESIGN, "color": "   "})

        assert response.status_code == 400
        assert response.json()["detail"]["fields"] == ["color"]

    async def test_list_requires_owner(self, client) -> None:
        response = await client.get("/api/designs")

        assert response.status_code == 422


class TestTokenizationsApi:
    async def test_start_and_poll(self, client, container, gateway) -> None:
        await gateway.save_design(make_design("alice", 1))

        response = await client.post("/api/tokenizations/alice")
        assert response.status_code == 202
        assert response.json()["status"] == "persisting"

        await container.orchestrator.wait("alice")
        response = await client.get("/api/tokenizations/alice")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "tokenized"
        assert body["attempts"] == 1
        assert body["account"]["address"]
        assert body["error"] is None

    async def test_conflict_while_in_flight(self, client, container, gateway, rpc) -> None:
        await gateway.save_design(make_design("alice", 1))
        rpc.blockhash_gate = asyncio.Event()

        first = await client.post("/api/tokenizations/alice")
        second = await client.post("/api/tokenizations/alice")

        assert first.status_code == 202
        assert second.status_code == 409
        assert second.json()["error"]["kind"] == "Conflict"

        rpc.blockhash_gate.set()
        await container.orchestrator.wait("alice")

    async def test_no_designs_is_reported_on_the_job(self, client, container) -> None:
        await client.post("/api/tokenizations/bob")
        await container.orchestrator.wait("bob")

        body = (await client.get("/api/tokenizations/bob")).json()

        assert body["status"] == "failed"
        assert body["error"]["kind"] == "NoDesigns"

    async def test_unknown_owner_is_404(self, client) -> None:
        assert (await client.get("/api/tokenizations/nobody")).status_code == 404
        assert (await client.delete("/api/tokenizations/nobody")).status_code == 404

    async def test_cancel(self, client, container, gateway, rpc) -> None:
        await gateway.save_design(make_design("alice", 1))
        rpc.blockhash_gate = asyncio.Event()
        await client.post("/api/tokenizations/alice")
        for _ in range(500):
            if "getLatestBlockhash" in rpc.calls:
                break
            await asyncio.sleep(0.01)

        response = await client.delete("/api/tokenizations/alice")
        assert response.status_code == 202

        job = await container.orchestrator.wait("alice")
        assert job.error.kind.value == "Cancelled"
        assert (await client.delete("/api/tokenizations/alice")).status_code == 409

    async def test_history_and_on_chain_read_back(self, client, container, gateway) -> None:
        await gateway.save_design(make_design("alice", 1))
        await client.post("/api/tokenizations/alice")
        await container.orchestrator.wait("alice")

        history = (await client.get("/api/tokenizations/alice/history")).json()
        assert len(history["jobs"]) == 1

        response = await client.get("/api/tokenizations/alice/designs")
        assert response.status_code == 200
        body = response.json()
        assert body["designs"][0]["title"] == "Oxford shirt 1"
        assert body["designs"][0]["imageUrl"] == "https://img.example/alice/1.png"

    async def test_read_back_requires_tokenized_job(self, client, container) -> None:
        await client.post("/api/tokenizations/bob")
        await container.orchestrator.wait("bob")

        assert (await client.get("/api/tokenizations/bob/designs")).status_code == 409


class TestHealth:
    async def test_health(self, client) -> None:
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "version": __version__, "cluster": "testnet", "in_flight_jobs": 0}
