"""
Job scheduler.

APScheduler setup for the indexer task.
"""

from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from cartridge.services.chunk_indexer import ChunkIndexerService
from jobs.tasks.chunk_indexer_task import run_chunk_indexer

CHUNK_INDEXER_JOB_ID = "chunk_indexer"


def create_scheduler(
    indexer: ChunkIndexerService,
    interval_seconds: int,
) -> AsyncIOScheduler:
    """
    Create a scheduler with the indexer job registered.

    The first run fires immediately; overlapping runs are skipped.

    Args:
        indexer: Indexer service
        interval_seconds: Seconds between ticks

    Returns:
        Scheduler (not started)
    """
    scheduler = AsyncIOScheduler(timezone=UTC)
    scheduler.add_job(
        run_chunk_indexer,
        trigger="interval",
        seconds=interval_seconds,
        args=[indexer],
        id=CHUNK_INDEXER_JOB_ID,
        name="Chunk indexer",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(UTC),
    )
    logger.info(f"[Scheduler] Chunk indexer every {interval_seconds}s")

    return scheduler


def shutdown_scheduler(scheduler: AsyncIOScheduler | None) -> None:
    """
    Stop the scheduler if it is running.

    Args:
        scheduler: Scheduler, or None when none was created
    """
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Stopped")
