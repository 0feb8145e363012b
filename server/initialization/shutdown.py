"""
Server Initialization - Shutdown Module.

Handles graceful shutdown of the indexer process.
Stops the indexer and scheduler, drains HTTP and closes connections.
"""

import asyncio

from aiohttp import web
from loguru import logger

from jobs.scheduler import shutdown_scheduler
from server.initialization.services import Services


async def _wait_for_indexer(services: Services, timeout: float) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while services.indexer.is_running and loop.time() < deadline:
        await asyncio.sleep(0.1)
    if services.indexer.is_running:
        logger.warning("Indexer cycle still running at shutdown")


async def shutdown_handler(
    services: Services,
    runner: web.AppRunner | None = None,
    grace_seconds: float = 5.0,
) -> None:
    """
    Handle graceful shutdown.

    Args:
        services: Services container
        runner: HTTP app runner to drain
        grace_seconds: Maximum time to wait for HTTP cleanup
    """
    logger.info("Graceful shutdown initiated...")

    services.indexer.stop()
    await _wait_for_indexer(services, grace_seconds)

    try:
        shutdown_scheduler(services.scheduler)
    except Exception as e:
        logger.warning(f"Error stopping scheduler: {e}")

    if runner is not None:
        try:
            await asyncio.wait_for(runner.cleanup(), timeout=grace_seconds)
            logger.info("HTTP server stopped")
        except TimeoutError:
            logger.warning(f"HTTP server cleanup timed out after {grace_seconds}s")
        except Exception as e:
            logger.error(f"Error stopping HTTP server: {e}")

    try:
        await services.rpc.close()
    except Exception as e:
        logger.warning(f"Error closing RPC session: {e}")

    try:
        await services.engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.warning(f"Error closing database: {e}")

    logger.info("Graceful shutdown complete")
