"""
Chunk repository.

Data access layer for stored payload chunks.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from cartridge.models.chunk import Chunk
from cartridge.repositories.base import BaseRepository


class ChunkRepository(BaseRepository[Chunk]):
    """Repository for payload chunks keyed by (game_id, idx)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Chunk, session)

    async def upsert(
        self,
        game_id: int,
        idx: int,
        data: bytes,
        tx_hash: str,
        height: int,
    ) -> None:
        """
        Insert a chunk or replace the one stored at the same key.

        The most recent write wins for length, data, tx_hash and height.

        Args:
            game_id: Payload identifier
            idx: Chunk position within the payload
            data: Chunk bytes
            tx_hash: Transaction that carried the chunk
            height: Block height of that transaction (0 if unknown)
        """
        values = {
            "game_id": game_id,
            "idx": idx,
            "length": len(data),
            "data": data,
            "tx_hash": tx_hash,
            "height": height,
        }

        insert = pg_insert if self.dialect_name() == "postgresql" else sqlite_insert
        stmt = insert(Chunk).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Chunk.game_id, Chunk.idx],
            set_={
                "length": stmt.excluded.length,
                "data": stmt.excluded.data,
                "tx_hash": stmt.excluded.tx_hash,
                "height": stmt.excluded.height,
                "updated_at": datetime.now(UTC),
            },
        )
        await self.session.execute(stmt)

    async def get_range(
        self, game_id: int, from_idx: int, limit: int
    ) -> list[Chunk]:
        """
        Get chunks with idx >= from_idx in ascending order.

        Args:
            game_id: Payload identifier
            from_idx: First index to include
            limit: Max results

        Returns:
            List of chunks
        """
        stmt = (
            select(Chunk)
            .where(Chunk.game_id == game_id, Chunk.idx >= from_idx)
            .order_by(Chunk.idx.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all(self, game_id: int) -> list[Chunk]:
        """
        Get every chunk of a payload in ascending idx order.

        Args:
            game_id: Payload identifier

        Returns:
            List of chunks
        """
        stmt = (
            select(Chunk)
            .where(Chunk.game_id == game_id)
            .order_by(Chunk.idx.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_indices(self, game_id: int) -> list[int]:
        """
        Get stored chunk indices of a payload in ascending order.

        Args:
            game_id: Payload identifier

        Returns:
            Sorted list of indices
        """
        stmt = (
            select(Chunk.idx)
            .where(Chunk.game_id == game_id)
            .order_by(Chunk.idx.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def max_height(self, game_id: int | None = None) -> int:
        """
        Get the highest block height among stored chunks.

        Args:
            game_id: Restrict to one payload (None for all)

        Returns:
            Max height, 0 when nothing is stored
        """
        stmt = select(func.max(Chunk.height))
        if game_id is not None:
            stmt = stmt.where(Chunk.game_id == game_id)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def tx_hashes(self, game_id: int) -> set[str]:
        """
        Get the distinct transaction hashes that supplied a payload's chunks.

        Args:
            game_id: Payload identifier

        Returns:
            Set of transaction hashes
        """
        stmt = (
            select(Chunk.tx_hash)
            .where(Chunk.game_id == game_id)
            .distinct()
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def has_tx_hash(self, game_id: int, tx_hash: str) -> bool:
        """
        Check if any chunk of a payload came from a transaction.

        Args:
            game_id: Payload identifier
            tx_hash: Transaction hash

        Returns:
            True if stored
        """
        return await self.exists(game_id=game_id, tx_hash=tx_hash)
