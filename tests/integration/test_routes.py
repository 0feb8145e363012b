"""Integration tests for the HTTP API."""

import hashlib
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from aiohttp import test_utils

from cartridge.services.chunk_codec import ChunkRecord
from cartridge.services.chunk_indexer import ChunkIndexerService
from cartridge.services.nimiq_rpc import RpcNotFoundError
from cartridge.services.reconstruction_service import ReconstructionService
from cartridge.utils.exceptions import StorageError
from jobs.health import INDEXER_KEY, SCHEDULER_KEY
from jobs.scheduler import create_scheduler
from server.routes import create_app

ARTIFACT = b"A" * 51 + b"B" * 20


@pytest.fixture
def reconstruction(store):
    return ReconstructionService(store)


@pytest.fixture
def app(manifest_service, reconstruction, write_manifest):
    write_manifest(
        "doom",
        game_id=7,
        filename="doom.zip",
        total_size=len(ARTIFACT),
        sha256=hashlib.sha256(ARTIFACT).hexdigest(),
        expected_tx_hashes=["tx0", "tx1"],
    )
    return create_app(manifest_service, reconstruction, cors_origins=["*"])


@pytest_asyncio.fixture
async def client(app):
    async with test_utils.TestClient(test_utils.TestServer(app)) as client:
        yield client


@pytest_asyncio.fixture
async def stored_artifact(store):
    await store.upsert(ChunkRecord(7, 0, ARTIFACT[:51]), "tx0", 100)
    await store.upsert(ChunkRecord(7, 1, ARTIFACT[51:]), "tx1", 101)


class TestManifestRoutes:
    """Tests for manifest endpoints."""

    @pytest.mark.asyncio
    async def test_list_manifests(self, client):
        resp = await client.get("/api/manifests")

        assert resp.status == 200
        data = await resp.json()
        assert data["manifests"][0]["name"] == "doom"
        assert data["manifests"][0]["tx_count"] == 2

    @pytest.mark.asyncio
    async def test_get_manifest(self, client):
        resp = await client.get("/api/manifest", params={"name": "doom"})

        assert resp.status == 200
        data = await resp.json()
        assert data["game_id"] == 7
        assert data["sha256"] == hashlib.sha256(ARTIFACT).hexdigest()

    @pytest.mark.asyncio
    async def test_default_manifest(self, client):
        resp = await client.get("/api/manifest")

        assert (await resp.json())["filename"] == "doom.zip"

    @pytest.mark.asyncio
    async def test_unknown_manifest(self, client):
        resp = await client.get("/api/manifest", params={"name": "quake"})

        assert resp.status == 404
        assert "error" in await resp.json()


class TestChunkRoutes:
    """Tests for status, chunk and verify endpoints."""

    @pytest.mark.asyncio
    async def test_status_requires_manifest(self, client):
        resp = await client.get("/api/status")

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_status(self, client, store):
        await store.upsert(ChunkRecord(7, 0, ARTIFACT[:51]), "tx0", 100)

        resp = await client.get("/api/status", params={"manifest": "doom"})

        assert resp.status == 200
        data = await resp.json()
        assert data["max_indexed_height"] == 100
        assert data["chunk_count"] == 1
        assert data["missing_ranges"] == [{"from": 1, "to": 1}]
        assert data["missing_tx_hashes"] == ["tx1"]

    @pytest.mark.asyncio
    async def test_chunks(self, client, stored_artifact):
        resp = await client.get("/api/chunks", params={"manifest": "doom", "from": "1"})

        data = await resp.json()
        assert data["game_id"] == 7
        assert data["chunk_size"] == 51
        assert [item["idx"] for item in data["items"]] == [1]
        assert data["items"][0]["len"] == 20

    @pytest.mark.asyncio
    async def test_chunks_bad_params_use_defaults(self, client, stored_artifact):
        resp = await client.get("/api/chunks", params={"manifest": "doom", "from": "x", "limit": "y"})

        assert resp.status == 200
        assert len((await resp.json())["items"]) == 2

    @pytest.mark.asyncio
    async def test_chunks_requires_manifest(self, client):
        resp = await client.get("/api/chunks")

        assert resp.status == 400

    @pytest.mark.asyncio
    async def test_raw_download(self, client, stored_artifact):
        resp = await client.get("/api/chunks/raw", params={"manifest": "doom"})

        assert resp.status == 200
        assert resp.content_type == "application/octet-stream"
        assert resp.headers["Content-Disposition"] == 'attachment; filename="doom.zip"'
        assert await resp.read() == ARTIFACT

    @pytest.mark.asyncio
    async def test_raw_download_empty(self, client):
        resp = await client.get("/api/chunks/raw", params={"manifest": "doom"})

        assert resp.status == 200
        assert await resp.read() == b""

    @pytest.mark.asyncio
    async def test_verify(self, client, stored_artifact):
        resp = await client.get("/api/verify", params={"manifest": "doom"})

        data = await resp.json()
        assert data["matches"] is True
        assert data["sha256"] == data["expected_sha"]

    @pytest.mark.asyncio
    async def test_storage_error_is_500(self, client, reconstruction):
        with patch.object(reconstruction, "status", AsyncMock(side_effect=StorageError("down"))):
            resp = await client.get("/api/status", params={"manifest": "doom"})

        assert resp.status == 500
        assert (await resp.json())["error"] == "storage unavailable"


class TestCors:
    """Tests for CORS handling."""

    @pytest.mark.asyncio
    async def test_cors_header_on_response(self, client):
        resp = await client.get("/api/manifests", headers={"Origin": "https://ui.test"})

        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_cors_header_on_error(self, client):
        resp = await client.get("/api/status", headers={"Origin": "https://ui.test"})

        assert resp.status == 400
        assert resp.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_preflight(self, client):
        resp = await client.options("/api/verify", headers={"Origin": "https://ui.test"})

        assert resp.status == 204
        assert "GET" in resp.headers["Access-Control-Allow-Methods"]

    @pytest.mark.asyncio
    async def test_restricted_origins(self, manifest_service, reconstruction):
        app = create_app(manifest_service, reconstruction, cors_origins=["https://ok.test"])

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            allowed = await client.get("/api/manifests", headers={"Origin": "https://ok.test"})
            denied = await client.get("/api/manifests", headers={"Origin": "https://evil.test"})

        assert allowed.headers["Access-Control-Allow-Origin"] == "https://ok.test"
        assert "Access-Control-Allow-Origin" not in denied.headers


class TestHealthRoutes:
    """Tests for health endpoints."""

    @pytest.mark.asyncio
    async def test_health_without_scheduler(self, client):
        resp = await client.get("/health")

        assert resp.status == 503

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        resp = await client.get("/liveness")

        assert resp.status == 200
        assert (await resp.json())["alive"] is True

    @pytest.mark.asyncio
    async def test_health_reports_indexer(self, app, mock_rpc, store, manifest_service):
        mock_rpc.transaction_by_hash.side_effect = RpcNotFoundError("not found")
        indexer = ChunkIndexerService(mock_rpc, store, manifest_service)
        await indexer.run_cycle()
        app[SCHEDULER_KEY] = create_scheduler(indexer, interval_seconds=2)
        app[INDEXER_KEY] = indexer

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            health = await client.get("/health")
            data = await health.json()
            ready = await client.get("/readiness")
            ready_status = ready.status

        assert data["status"] == "stopped"
        assert data["jobs_count"] == 1
        assert data["indexer"]["cycles_run"] == 1
        assert data["indexer"]["last_report"]["aborted"] is False
        assert ready_status == 503
