"""
Chunk Indexer Core Service.

Main service class that combines hash discovery and block scanning.
Inherits from mixins to provide both discovery modes.
"""

import asyncio
from datetime import UTC, datetime

from loguru import logger

from cartridge.services.chunk_codec import decode_payload
from cartridge.services.chunk_store import ChunkStore
from cartridge.services.manifest_service import Manifest, ManifestService
from cartridge.services.nimiq_rpc import NimiqRPC, Transaction
from cartridge.utils.exceptions import MalformedChunkError, StorageError

from .block_scan_mixin import BlockScanMixin
from .constants import OUTCOME_ABSENT, OUTCOME_MALFORMED, OUTCOME_STORED
from .context import CycleReport, IndexerContext
from .hash_discovery_mixin import HashDiscoveryMixin


class ChunkIndexerService(HashDiscoveryMixin, BlockScanMixin):
    """
    Discovers chunk-bearing transactions and stores their chunks.

    Each cycle runs hash discovery first (manifest-listed transaction
    hashes not yet stored), then block scanning from the persisted cursor
    when enabled. Cycles never overlap.
    """

    def __init__(
        self,
        rpc: NimiqRPC,
        store: ChunkStore,
        manifests: ManifestService,
        context: IndexerContext | None = None,
        index_start_height: int = 0,
        block_scan_auto: bool = False,
        cache_malformed_hashes: bool = True,
    ) -> None:
        """
        Initialize indexer.

        Args:
            rpc: Nimiq RPC client
            store: Chunk store
            manifests: Manifest supplier
            context: Indexer state (a fresh one if omitted)
            index_start_height: Initial cursor when none is persisted
            block_scan_auto: Decide block scanning per cycle from manifests
            cache_malformed_hashes: Do not refetch hashes with bad payloads
        """
        self.rpc = rpc
        self.store = store
        self.manifests = manifests
        self.context = context or IndexerContext()
        self.index_start_height = index_start_height
        self.block_scan_auto = block_scan_auto
        self.cache_malformed_hashes = cache_malformed_hashes

        self._lock = asyncio.Lock()
        # (game_id, tx_hash) pairs whose payload will never yield a chunk
        self._rejected_hashes: set[tuple[int, str]] = set()

        self.cycles_run = 0
        self.last_cycle_at: datetime | None = None
        self.last_report: CycleReport | None = None

    @property
    def is_running(self) -> bool:
        """True while a cycle is in progress."""
        return self._lock.locked()

    def stop(self) -> None:
        """Request cooperative cancellation of current and future cycles."""
        if not self.context.stopped:
            logger.info("[Indexer] Stop requested")
        self.context.stop_event.set()

    async def run_cycle(self) -> CycleReport | None:
        """
        Run one indexer cycle.

        Returns:
            CycleReport, or None when a cycle was already running
        """
        if self._lock.locked():
            logger.debug("[Indexer] Previous cycle still running, skipping tick")
            return None

        async with self._lock:
            report = CycleReport(cursor=self.context.cursor)
            if self.context.stopped:
                report.aborted = True
                return report

            try:
                manifests = [m for _, m in self.manifests.list_manifests()]
                if self.block_scan_auto:
                    self.context.block_scan_enabled = any(
                        not m.expected_tx_hashes for m in manifests
                    )

                if self.context.hash_discovery_enabled:
                    await self.discover_by_hash(manifests, report)

                if self.context.block_scan_enabled and not report.aborted:
                    await self.scan_blocks(manifests, report)

            except StorageError as e:
                report.aborted = True
                report.errors += 1
                logger.error(f"[Indexer] Storage unavailable, cycle aborted: {e}")
            except Exception as e:
                report.aborted = True
                report.errors += 1
                logger.exception(f"[Indexer] Unexpected error in cycle: {e}")

            report.cursor = self.context.cursor
            self.cycles_run += 1
            self.last_cycle_at = datetime.now(UTC)
            self.last_report = report

            if report.chunks_stored:
                logger.success(
                    f"[Indexer] Cycle stored {report.chunks_stored} chunks "
                    f"(hashes={report.hashes_fetched}, "
                    f"heights={report.heights_scanned}, cursor={report.cursor})"
                )
            return report

    async def process_transaction(
        self, tx: Transaction, height: int, report: CycleReport
    ) -> tuple[str, int | None]:
        """
        Decode a transaction payload and store its chunk.

        Args:
            tx: Transaction from the node
            height: Block height to record
            report: Cycle counters to update

        Returns:
            (outcome, game_id) where game_id is set for stored chunks

        Raises:
            StorageError: The store is unavailable
        """
        try:
            chunk = decode_payload(tx.payload_hex)
        except MalformedChunkError as e:
            report.malformed += 1
            logger.warning(f"[Indexer] tx {tx.hash}: {e.reason}")
            return OUTCOME_MALFORMED, None

        if chunk is None:
            return OUTCOME_ABSENT, None

        await self.store.upsert(chunk, tx.hash, height)
        report.chunks_stored += 1
        logger.info(
            f"[Indexer] Indexed chunk game_id={chunk.game_id} "
            f"idx={chunk.chunk_idx} len={chunk.length} tx={tx.hash}"
        )
        return OUTCOME_STORED, chunk.game_id

    def _initial_cursor(self, manifests: list[Manifest]) -> int:
        if self.index_start_height > 0:
            return self.index_start_height

        start_heights = [
            m.start_height for m in manifests if m.start_height is not None
        ]
        if start_heights:
            return max(min(start_heights) - 1, 0)
        return 0
