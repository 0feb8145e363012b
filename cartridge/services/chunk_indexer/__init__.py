"""
Chunk Indexer Service.

Discovers chunk-bearing transactions and persists their chunks.

Key features:
- Hash discovery for manifests that list their transaction hashes
- Bounded, resumable block scanning from a persisted cursor
- Continue-on-error: one bad transaction or block never ends a cycle
"""

from .context import CycleReport, IndexerContext
from .core import ChunkIndexerService
from .block_scan_mixin import BlockScanMixin
from .hash_discovery_mixin import HashDiscoveryMixin

__all__ = [
    "BlockScanMixin",
    "ChunkIndexerService",
    "CycleReport",
    "HashDiscoveryMixin",
    "IndexerContext",
]
