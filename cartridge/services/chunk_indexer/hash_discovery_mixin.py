"""
Chunk Indexer Hash Discovery Mixin.

Fetches manifest-listed transactions that have not been stored yet.
"""

from loguru import logger

from cartridge.services.manifest_service import Manifest
from cartridge.services.nimiq_rpc import RpcError
from cartridge.utils.exceptions import is_expected

from .constants import OUTCOME_STORED
from .context import CycleReport


class HashDiscoveryMixin:
    """Mixin providing explicit-hash discovery."""

    def _missing_hashes(
        self, manifest: Manifest, stored: set[str]
    ) -> list[str]:
        missing = []
        for tx_hash in dict.fromkeys(manifest.expected_tx_hashes):
            if tx_hash in stored:
                continue
            if (manifest.game_id, tx_hash) in self._rejected_hashes:
                continue
            missing.append(tx_hash)
        return missing

    async def discover_by_hash(
        self, manifests: list[Manifest], report: CycleReport
    ) -> None:
        """
        Fetch and store expected transactions missing from the store.

        Not-found and transport failures leave the hash for the next cycle.

        Args:
            manifests: Loaded manifests
            report: Cycle counters to update
        """
        for manifest in manifests:
            if not manifest.expected_tx_hashes:
                continue

            stored = await self.store.distinct_tx_hashes(manifest.game_id)
            missing = self._missing_hashes(manifest, stored)
            if not missing:
                continue

            logger.info(
                f"[Indexer] Fetching {len(missing)} expected transactions "
                f"for game_id={manifest.game_id}"
            )

            for tx_hash in missing:
                if self.context.stopped:
                    report.aborted = True
                    return

                try:
                    tx = await self.rpc.transaction_by_hash(tx_hash)
                except RpcError as e:
                    if is_expected(e):
                        report.not_found += 1
                        logger.debug(
                            f"[Indexer] tx {tx_hash} not found (may not be confirmed yet)"
                        )
                    else:
                        report.errors += 1
                        logger.warning(f"[Indexer] Failed to fetch tx {tx_hash}: {e}")
                    continue

                report.hashes_fetched += 1
                outcome, game_id = await self.process_transaction(
                    tx, tx.height, report
                )

                if outcome == OUTCOME_STORED and game_id == manifest.game_id:
                    continue

                if outcome == OUTCOME_STORED:
                    logger.warning(
                        f"[Indexer] tx {tx_hash} carries game_id={game_id}, "
                        f"manifest expects {manifest.game_id}"
                    )
                else:
                    logger.warning(
                        f"[Indexer] Expected tx {tx_hash} has no usable chunk ({outcome})"
                    )

                if self.cache_malformed_hashes:
                    self._rejected_hashes.add((manifest.game_id, tx_hash))
