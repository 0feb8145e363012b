"""
Repositories.

Data access layer for the chunk store.
"""

from cartridge.repositories.base import BaseRepository
from cartridge.repositories.chunk_repository import ChunkRepository
from cartridge.repositories.indexer_state_repository import (
    IndexerStateRepository,
)

__all__ = [
    "BaseRepository",
    "ChunkRepository",
    "IndexerStateRepository",
]
