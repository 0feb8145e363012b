"""
Chunk store.

Persistence facade used by the indexer (sole writer) and the query layer
(concurrent readers). Every operation runs in its own short session so no
transaction is ever held across an RPC call.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cartridge.config.constants import BLOCK_SCAN_CURSOR
from cartridge.models.chunk import Chunk
from cartridge.repositories.chunk_repository import ChunkRepository
from cartridge.repositories.indexer_state_repository import (
    IndexerStateRepository,
)
from cartridge.services.chunk_codec import ChunkRecord
from cartridge.utils.exceptions import StorageError


class ChunkStore:
    """Idempotent chunk persistence keyed by (game_id, idx)."""

    def __init__(
        self, session_maker: async_sessionmaker[AsyncSession]
    ) -> None:
        """
        Initialize chunk store.

        Args:
            session_maker: Session factory for the chunk database
        """
        self.session_maker = session_maker

    @asynccontextmanager
    async def _session(
        self, operation: str, write: bool = False
    ) -> AsyncIterator[AsyncSession]:
        try:
            async with self.session_maker() as session:
                yield session
                if write:
                    await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"[Store] {operation} failed: {e}")
            raise StorageError(f"{operation} failed: {e}") from e

    async def upsert(
        self, chunk: ChunkRecord, tx_hash: str, height: int
    ) -> None:
        """
        Store a chunk, replacing any chunk at the same key.

        Args:
            chunk: Decoded chunk
            tx_hash: Transaction that carried the chunk
            height: Block height of that transaction
        """
        async with self._session("upsert", write=True) as session:
            await ChunkRepository(session).upsert(
                game_id=chunk.game_id,
                idx=chunk.chunk_idx,
                data=chunk.data,
                tx_hash=tx_hash,
                height=height,
            )
        logger.debug(
            f"[Store] Chunk game={chunk.game_id} idx={chunk.chunk_idx} "
            f"len={chunk.length} tx={tx_hash} height={height}"
        )

    async def range(
        self, game_id: int, from_idx: int, limit: int
    ) -> list[Chunk]:
        """Chunks with idx >= from_idx, ascending, at most limit."""
        async with self._session("range") as session:
            return await ChunkRepository(session).get_range(
                game_id, from_idx, limit
            )

    async def all(self, game_id: int) -> list[Chunk]:
        """All chunks of a payload, ascending by idx."""
        async with self._session("all") as session:
            return await ChunkRepository(session).get_all(game_id)

    async def indices(self, game_id: int) -> list[int]:
        """Stored chunk indices of a payload, ascending."""
        async with self._session("indices") as session:
            return await ChunkRepository(session).get_indices(game_id)

    async def count(self, game_id: int) -> int:
        """Number of stored chunks for a payload."""
        async with self._session("count") as session:
            return await ChunkRepository(session).count(game_id=game_id)

    async def max_height(self) -> int:
        """Highest block height among all stored chunks, 0 if empty."""
        async with self._session("max_height") as session:
            return await ChunkRepository(session).max_height()

    async def distinct_tx_hashes(self, game_id: int) -> set[str]:
        """Transaction hashes that supplied a payload's chunks."""
        async with self._session("distinct_tx_hashes") as session:
            return await ChunkRepository(session).tx_hashes(game_id)

    async def has_tx_hash(self, game_id: int, tx_hash: str) -> bool:
        """Check if a transaction already supplied a chunk of a payload."""
        async with self._session("has_tx_hash") as session:
            return await ChunkRepository(session).has_tx_hash(
                game_id, tx_hash
            )

    async def get_cursor(self, name: str = BLOCK_SCAN_CURSOR) -> int | None:
        """
        Get a persisted progress cursor.

        Args:
            name: Cursor name

        Returns:
            Last indexed height, or None if never persisted
        """
        async with self._session("get_cursor") as session:
            state = await IndexerStateRepository(session).get(name)
            return state.last_indexed_height if state else None

    async def set_cursor(
        self, height: int, name: str = BLOCK_SCAN_CURSOR
    ) -> None:
        """
        Persist a progress cursor.

        Args:
            height: Last fully attempted height
            name: Cursor name
        """
        async with self._session("set_cursor", write=True) as session:
            await IndexerStateRepository(session).set_height(name, height)

    async def record_cursor_error(
        self, height: int, error: str, name: str = BLOCK_SCAN_CURSOR
    ) -> None:
        """
        Persist a cursor that moved past a failed height.

        Args:
            height: Height that was skipped
            error: Failure description
            name: Cursor name
        """
        async with self._session("record_cursor_error", write=True) as session:
            await IndexerStateRepository(session).record_error(
                name, height, error
            )
