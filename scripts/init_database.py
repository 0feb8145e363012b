#!/usr/bin/env python3
"""Initialize chunk store tables."""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from cartridge.config.database import build_engine, init_models  # noqa: E402
from cartridge.config.settings import get_settings  # noqa: E402

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all chunk store tables."""
    settings = get_settings()

    logger.info("Connecting to database...")
    engine = build_engine(settings.database_url)
    await init_models(engine)
    await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
