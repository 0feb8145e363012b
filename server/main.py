"""
Indexer main entry point.

Runs the chunk indexer on a schedule and serves the HTTP API until
SIGINT or SIGTERM.
"""

import asyncio
import signal
import sys

from aiohttp import web
from loguru import logger

from cartridge.config.settings import get_settings
from jobs.health import INDEXER_KEY, SCHEDULER_KEY
from jobs.scheduler import create_scheduler
from server.initialization.logging import setup_logging
from server.initialization.services import initialize_all_services
from server.initialization.shutdown import shutdown_handler
from server.routes import create_app


async def main() -> None:
    """Initialize and run the indexer and API server."""
    settings = get_settings()

    # Configure logger
    setup_logging(settings.log_level, settings.log_file)

    # Initialize services (database, RPC, indexer)
    services = await initialize_all_services(settings)

    scheduler = create_scheduler(
        services.indexer, services.indexer.context.interval_seconds
    )
    services.scheduler = scheduler

    app = create_app(
        services.manifests,
        services.reconstruction,
        cors_origins=settings.get_cors_origins(),
    )
    app[SCHEDULER_KEY] = scheduler
    app[INDEXER_KEY] = services.indexer

    runner = web.AppRunner(app)
    await runner.setup()

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    try:
        site = web.TCPSite(runner, settings.http_host, settings.http_port)
        await site.start()
        logger.info(f"API server started on {settings.http_host}:{settings.http_port}")

        scheduler.start()
        logger.info("Indexer started successfully")

        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await shutdown_handler(
            services,
            runner=runner,
            grace_seconds=settings.http_shutdown_grace_seconds,
        )


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Indexer stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Indexer crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    run()
