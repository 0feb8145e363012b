"""Tests for graceful shutdown."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from server.initialization.services import Services
from server.initialization.shutdown import shutdown_handler


@pytest.fixture
def services():
    indexer = MagicMock()
    indexer.is_running = False
    return Services(
        engine=MagicMock(dispose=AsyncMock()),
        session_maker=MagicMock(),
        store=MagicMock(),
        manifests=MagicMock(),
        rpc=MagicMock(close=AsyncMock()),
        indexer=indexer,
        reconstruction=MagicMock(),
    )


class TestShutdownHandler:
    """Tests for shutdown_handler."""

    @pytest.mark.asyncio
    async def test_releases_resources(self, services):
        runner = MagicMock(cleanup=AsyncMock())

        await shutdown_handler(services, runner, grace_seconds=0.5)

        services.indexer.stop.assert_called_once()
        runner.cleanup.assert_awaited_once()
        services.rpc.close.assert_awaited_once()
        services.engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_continues_after_close_errors(self, services):
        services.rpc.close.side_effect = RuntimeError("already closed")

        await shutdown_handler(services, grace_seconds=0.1)

        services.engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_gives_up_on_stuck_cycle(self, services):
        services.indexer.is_running = True

        await shutdown_handler(services, grace_seconds=0.2)

        services.engine.dispose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stops_owned_scheduler(self, services):
        services.scheduler = MagicMock(running=True)

        await shutdown_handler(services, grace_seconds=0.1)

        services.scheduler.shutdown.assert_called_once_with(wait=False)
