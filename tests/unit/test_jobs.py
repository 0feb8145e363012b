"""Tests for the scheduler setup and indexer task."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cartridge.services.chunk_indexer import CycleReport, IndexerContext
from jobs.scheduler import CHUNK_INDEXER_JOB_ID, create_scheduler, shutdown_scheduler
from jobs.tasks.chunk_indexer_task import run_chunk_indexer


@pytest.fixture
def mock_indexer():
    indexer = MagicMock()
    indexer.context = IndexerContext()
    indexer.run_cycle = AsyncMock()
    return indexer


class TestRunChunkIndexer:
    """Tests for run_chunk_indexer."""

    @pytest.mark.asyncio
    async def test_reports_cycle(self, mock_indexer):
        mock_indexer.run_cycle.return_value = CycleReport(chunks_stored=3, cursor=10)

        result = await run_chunk_indexer(mock_indexer)

        assert result["success"] is True
        assert result["report"]["chunks_stored"] == 3
        assert result["report"]["cursor"] == 10

    @pytest.mark.asyncio
    async def test_skipped_tick(self, mock_indexer):
        mock_indexer.run_cycle.return_value = None

        result = await run_chunk_indexer(mock_indexer)

        assert result["skipped"] is True
        assert result["report"] is None

    @pytest.mark.asyncio
    async def test_aborted_cycle_is_not_success(self, mock_indexer):
        mock_indexer.run_cycle.return_value = CycleReport(aborted=True, errors=1)

        result = await run_chunk_indexer(mock_indexer)

        assert result["success"] is False
        assert result["errors"]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, mock_indexer):
        mock_indexer.run_cycle.side_effect = RuntimeError("boom")

        result = await run_chunk_indexer(mock_indexer)

        assert result["success"] is False
        assert "boom" in result["errors"]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, mock_indexer):
        mock_indexer.run_cycle.side_effect = asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await run_chunk_indexer(mock_indexer)


class TestScheduler:
    """Tests for create_scheduler."""

    def test_job_registered(self, mock_indexer):
        scheduler = create_scheduler(mock_indexer, interval_seconds=5)

        job = scheduler.get_job(CHUNK_INDEXER_JOB_ID)

        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval.total_seconds() == 5
        assert job.args == (mock_indexer,)

    def test_shutdown_ignores_stopped_scheduler(self, mock_indexer):
        scheduler = create_scheduler(mock_indexer, interval_seconds=5)

        shutdown_scheduler(scheduler)

        assert scheduler.running is False
