"""
Chunk Indexer Background Task.

Runs one indexer cycle per scheduler tick:
1. Hash discovery for manifest-listed transactions
2. Bounded block scan from the persisted cursor (when enabled)

Failures never propagate to the scheduler; the next tick retries.
"""

import asyncio

from loguru import logger

from cartridge.services.chunk_indexer import ChunkIndexerService


async def run_chunk_indexer(indexer: ChunkIndexerService) -> dict:
    """
    Main indexer task.

    Args:
        indexer: Indexer service

    Returns:
        Dict with cycle results
    """
    results = {
        "success": False,
        "skipped": False,
        "report": None,
        "errors": [],
    }

    try:
        report = await indexer.run_cycle()
        if report is None:
            results["skipped"] = True
            results["success"] = True
            return results

        results["report"] = report.to_dict()
        results["success"] = not report.aborted or indexer.context.stopped
        if report.errors:
            results["errors"].append(f"{report.errors} items failed")

    except asyncio.CancelledError:
        logger.info("[Indexer Task] Task cancelled")
        raise
    except Exception as e:
        logger.exception(f"[Indexer Task] Task failed: {e}")
        results["errors"].append(str(e))

    return results
