"""Pytest configuration and shared fixtures for all tests."""

import hashlib
import json
import os
import sys
from pathlib import Path

# Minimal environment for Settings validation
os.environ.setdefault("NIMIQ_RPC_URL", "http://localhost:8648")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE", "")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from cartridge.config.database import (  # noqa: E402
    build_engine,
    build_session_maker,
    init_models,
)
from cartridge.services.chunk_codec import encode_payload_hex  # noqa: E402
from cartridge.services.chunk_store import ChunkStore  # noqa: E402
from cartridge.services.manifest_service import ManifestService  # noqa: E402
from cartridge.services.nimiq_rpc import Transaction  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with the chunk schema."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the in-memory engine."""
    return build_session_maker(engine)


@pytest.fixture
def store(session_maker):
    """Chunk store backed by the in-memory database."""
    return ChunkStore(session_maker)


@pytest.fixture
def mock_rpc():
    """Mock NimiqRPC with nothing on chain."""
    rpc = AsyncMock()
    rpc.head_height = AsyncMock(return_value=0)
    rpc.block_by_height = AsyncMock()
    rpc.transaction_by_hash = AsyncMock()
    rpc.transactions_by_address = AsyncMock(return_value=[])
    rpc.close = AsyncMock()
    return rpc


@pytest.fixture
def manifests_dir(tmp_path):
    """Empty manifests directory."""
    path = tmp_path / "manifests"
    path.mkdir()
    return path


@pytest.fixture
def manifest_service(manifests_dir):
    """Manifest service reading the temporary directory."""
    return ManifestService(manifests_dir)


@pytest.fixture
def write_manifest(manifests_dir):
    """
    Write a manifest file.

    Returns:
        Callable(name, **fields) -> Path
    """

    def _write(name: str = "game", **fields) -> Path:
        data = {
            "game_id": 7,
            "filename": "game.zip",
            "total_size": 102,
            "chunk_size": 51,
            "sha256": hashlib.sha256(b"").hexdigest(),
            "sender_address": "NQ07 0000 0000 0000 0000 0000 0000 0000 0000",
            "network": "testnet",
        }
        data.update(fields)
        path = manifests_dir / f"{name}.json"
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def make_chunk_tx():
    """
    Build a transaction carrying one chunk.

    Returns:
        Callable(tx_hash, game_id, idx, data, height) -> Transaction
    """

    def _make(
        tx_hash: str,
        game_id: int = 7,
        idx: int = 0,
        data: bytes = b"chunk",
        height: int = 0,
    ) -> Transaction:
        return Transaction(
            hash=tx_hash,
            recipient_data=encode_payload_hex(game_id, idx, data),
            height=height,
        )

    return _make


@pytest.fixture
def sample_transaction_hash():
    """Sample transaction hash for testing."""
    return "a3f1c2d4e5b60718293a4b5c6d7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f90"
