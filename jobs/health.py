"""
Health check handlers for scheduler and indexer monitoring.

Mounted on the API application.
"""

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from cartridge.services.chunk_indexer import ChunkIndexerService

SCHEDULER_KEY = web.AppKey("scheduler", AsyncIOScheduler)
INDEXER_KEY = web.AppKey("indexer", ChunkIndexerService)


def _indexer_info(indexer: ChunkIndexerService | None) -> dict | None:
    if indexer is None:
        return None
    last_report = indexer.last_report
    return {
        "running": indexer.is_running,
        "stopped": indexer.context.stopped,
        "cursor": indexer.context.cursor,
        "block_scan_enabled": indexer.context.block_scan_enabled,
        "hash_discovery_enabled": indexer.context.hash_discovery_enabled,
        "cycles_run": indexer.cycles_run,
        "last_cycle_at": (
            indexer.last_cycle_at.isoformat() if indexer.last_cycle_at else None
        ),
        "last_report": last_report.to_dict() if last_report else None,
    }


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with scheduler and indexer status
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None:
        return web.json_response(
            {
                "status": "unhealthy",
                "error": "Scheduler not initialized",
            },
            status=503,
        )

    try:
        is_running = scheduler.running
        jobs = scheduler.get_jobs()
        job_info = [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in jobs
        ]

        return web.json_response(
            {
                "status": "healthy" if is_running else "stopped",
                "scheduler_running": is_running,
                "jobs_count": len(jobs),
                "jobs": job_info,
                "indexer": _indexer_info(request.app.get(INDEXER_KEY)),
            }
        )
    except Exception as e:
        logger.error(f"[Health] Check failed: {e}")
        return web.json_response(
            {
                "status": "unhealthy",
                "error": str(e),
            },
            status=503,
        )


async def readiness_handler(request: web.Request) -> web.Response:
    """
    Readiness check endpoint.

    Returns:
        JSON response indicating if the indexer is scheduled
    """
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None or not scheduler.running:
        return web.json_response(
            {
                "status": "not_ready",
                "ready": False,
            },
            status=503,
        )

    return web.json_response(
        {
            "status": "ready",
            "ready": True,
        }
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response(
        {
            "status": "alive",
            "alive": True,
        }
    )


def register_health_routes(app: web.Application) -> None:
    """
    Add health routes to an application.

    Args:
        app: aiohttp application
    """
    app.router.add_get("/health", health_handler)
    app.router.add_get("/readiness", readiness_handler)
    app.router.add_get("/liveness", liveness_handler)
