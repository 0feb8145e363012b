"""
Chunk Indexer state objects.

IndexerContext is the explicit, mutable state of one indexer instance.
CycleReport summarizes a single cycle.
"""

import asyncio
from dataclasses import asdict, dataclass, field

from cartridge.config.constants import MAX_BLOCKS_PER_CYCLE, POLL_INTERVAL_SECONDS


@dataclass
class IndexerContext:
    """Cursor, mode flags and cancellation for one indexer."""

    cursor: int = 0
    hash_discovery_enabled: bool = True
    block_scan_enabled: bool = False
    interval_seconds: int = POLL_INTERVAL_SECONDS
    max_blocks_per_cycle: int = MAX_BLOCKS_PER_CYCLE
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    # Set once the cursor has been read from the store
    cursor_loaded: bool = False

    @property
    def stopped(self) -> bool:
        return self.stop_event.is_set()


@dataclass
class CycleReport:
    """Counters for one indexer cycle."""

    hashes_fetched: int = 0
    chunks_stored: int = 0
    not_found: int = 0
    malformed: int = 0
    errors: int = 0
    heights_scanned: int = 0
    cursor: int = 0
    aborted: bool = False

    def to_dict(self) -> dict:
        return asdict(self)
