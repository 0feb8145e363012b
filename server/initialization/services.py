"""
Server Initialization - Services Module.

Builds the database, RPC client, indexer and query services from settings.
"""

from dataclasses import dataclass
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from cartridge.config.database import build_engine, build_session_maker, init_models
from cartridge.config.settings import Settings
from cartridge.services.chunk_indexer import ChunkIndexerService, IndexerContext
from cartridge.services.chunk_indexer.constants import BLOCK_SCAN_AUTO, BLOCK_SCAN_ON
from cartridge.services.chunk_store import ChunkStore
from cartridge.services.manifest_service import ManifestService
from cartridge.services.nimiq_rpc import NimiqRPC
from cartridge.services.reconstruction_service import ReconstructionService


@dataclass
class Services:
    """Everything the process owns between startup and shutdown."""

    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]
    store: ChunkStore
    manifests: ManifestService
    rpc: NimiqRPC
    indexer: ChunkIndexerService
    reconstruction: ReconstructionService
    scheduler: AsyncIOScheduler | None = None


def validate_environment(settings: Settings) -> None:
    """Warn about settings that make the indexer do nothing."""
    if not Path(settings.manifests_dir).is_dir():
        logger.warning(
            f"Manifests directory {settings.manifests_dir} does not exist; "
            "hash discovery has nothing to fetch"
        )
    if not settings.hash_discovery_enabled and settings.block_scan_mode == "off":
        logger.warning("Both discovery modes are disabled; no chunks will be indexed")


def _ensure_sqlite_directory(database_url: str) -> None:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or not url.database:
        return
    if url.database == ":memory:":
        return
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def initialize_all_services(settings: Settings) -> Services:
    """
    Create and connect all services.

    Args:
        settings: Application settings

    Returns:
        Services container
    """
    validate_environment(settings)

    _ensure_sqlite_directory(settings.database_url)
    engine = build_engine(settings.database_url, echo=settings.database_echo)
    await init_models(engine)
    session_maker = build_session_maker(engine)

    store = ChunkStore(session_maker)
    manifests = ManifestService(settings.manifests_dir)
    rpc = NimiqRPC(settings.nimiq_rpc_url, timeout=settings.rpc_timeout_seconds)

    context = IndexerContext(
        hash_discovery_enabled=settings.hash_discovery_enabled,
        block_scan_enabled=settings.block_scan_mode == BLOCK_SCAN_ON,
        interval_seconds=settings.poll_interval_seconds,
        max_blocks_per_cycle=settings.max_blocks_per_cycle,
    )
    indexer = ChunkIndexerService(
        rpc=rpc,
        store=store,
        manifests=manifests,
        context=context,
        index_start_height=settings.index_start_height,
        block_scan_auto=settings.block_scan_mode == BLOCK_SCAN_AUTO,
        cache_malformed_hashes=settings.cache_malformed_hashes,
    )

    logger.info(
        f"Services initialized (rpc={settings.nimiq_rpc_url}, "
        f"block_scan={settings.block_scan_mode}, "
        f"hash_discovery={settings.hash_discovery_enabled})"
    )

    return Services(
        engine=engine,
        session_maker=session_maker,
        store=store,
        manifests=manifests,
        rpc=rpc,
        indexer=indexer,
        reconstruction=ReconstructionService(store),
    )
