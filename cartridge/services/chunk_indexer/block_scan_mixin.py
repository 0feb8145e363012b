"""
Chunk Indexer Block Scan Mixin.

Walks blocks from the persisted cursor towards the chain head, a bounded
number per cycle.
"""

from loguru import logger

from cartridge.services.manifest_service import Manifest
from cartridge.services.nimiq_rpc import RpcError
from cartridge.utils.exceptions import is_expected

from .context import CycleReport


class BlockScanMixin:
    """Mixin providing block-scan discovery."""

    async def load_cursor(self, manifests: list[Manifest]) -> int:
        """
        Load the block-scan cursor once per process.

        Uses the persisted cursor if there is one, otherwise the configured
        start height, otherwise the lowest manifest start_height minus one.

        Args:
            manifests: Loaded manifests

        Returns:
            Current cursor
        """
        if not self.context.cursor_loaded:
            persisted = await self.store.get_cursor()
            if persisted is not None:
                self.context.cursor = persisted
                logger.info(f"[Indexer] Resuming block scan after height {persisted}")
            else:
                self.context.cursor = self._initial_cursor(manifests)
                logger.info(
                    f"[Indexer] Starting block scan after height {self.context.cursor}"
                )
            self.context.cursor_loaded = True
        return self.context.cursor

    async def scan_blocks(
        self, manifests: list[Manifest], report: CycleReport
    ) -> None:
        """
        Scan heights cursor+1 .. min(head, cursor+max_blocks_per_cycle).

        A block that cannot be fetched is skipped and the cursor moves past
        it. The cursor is persisted after every attempted height.

        Args:
            manifests: Loaded manifests
            report: Cycle counters to update
        """
        cursor = await self.load_cursor(manifests)

        try:
            head = await self.rpc.head_height()
        except RpcError as e:
            report.errors += 1
            logger.warning(f"[Indexer] Cannot read head height: {e}")
            return

        if head <= cursor:
            return

        target = min(head, cursor + self.context.max_blocks_per_cycle)
        logger.debug(f"[Indexer] Scanning heights {cursor + 1}..{target} (head {head})")

        for height in range(cursor + 1, target + 1):
            if self.context.stopped:
                report.aborted = True
                return

            try:
                block = await self.rpc.block_by_height(height, True)
            except RpcError as e:
                report.errors += 1
                if is_expected(e):
                    logger.info(f"[Indexer] Skipping height {height}, no block: {e}")
                else:
                    logger.warning(f"[Indexer] Skipping height {height}: {e}")
                await self.store.record_cursor_error(height, str(e))
                self.context.cursor = height
                continue

            for tx in block.transactions:
                await self.process_transaction(tx, tx.height or height, report)

            await self.store.set_cursor(height)
            self.context.cursor = height
            report.heights_scanned += 1
