"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from cartridge.models.base import Base
from cartridge.models.chunk import Chunk
from cartridge.models.indexer_state import IndexerState

__all__ = [
    "Base",
    "Chunk",
    "IndexerState",
]
