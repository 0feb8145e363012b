"""
Indexer State repository.

Data access layer for persisted scan cursors.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from cartridge.models.indexer_state import IndexerState
from cartridge.repositories.base import BaseRepository

# Stored error text is truncated to this many characters
MAX_ERROR_LENGTH = 1000


class IndexerStateRepository(BaseRepository[IndexerState]):
    """Repository for indexer cursors."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(IndexerState, session)

    async def get_or_create(
        self, name: str, initial_height: int = 0
    ) -> IndexerState:
        """
        Get a cursor row, creating it at initial_height if missing.

        Args:
            name: Cursor name
            initial_height: Height for a new cursor

        Returns:
            Cursor row
        """
        state = await self.get(name)
        if state is None:
            state = IndexerState(
                name=name,
                last_indexed_height=initial_height,
                error_count=0,
            )
            self.session.add(state)
            await self.session.flush()
        return state

    async def set_height(self, name: str, height: int) -> IndexerState:
        """
        Move a cursor to height.

        Args:
            name: Cursor name
            height: New last indexed height

        Returns:
            Updated cursor row
        """
        state = await self.get_or_create(name, height)
        state.last_indexed_height = height
        await self.session.flush()
        return state

    async def record_error(
        self, name: str, height: int, error: str
    ) -> IndexerState:
        """
        Record a failure at height and move the cursor past it.

        Args:
            name: Cursor name
            height: Height that failed
            error: Error description

        Returns:
            Updated cursor row
        """
        state = await self.get_or_create(name, height)
        state.last_indexed_height = height
        state.last_error = f"height {height}: {error}"[:MAX_ERROR_LENGTH]
        state.error_count = (state.error_count or 0) + 1
        await self.session.flush()
        return state
