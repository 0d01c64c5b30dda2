"""
Tests for the job registry and manual triggering.
"""

from unittest.mock import AsyncMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from app.core import scheduler


@pytest.fixture(autouse=True)
def _isolated_registry():
    with patch.dict(scheduler._job_registry, clear=True):
        yield


@pytest.mark.asyncio
async def test_manual_trigger_runs_job():
    job = AsyncMock(return_value=3)
    scheduler.register_job("cleanup", job, IntervalTrigger(hours=1))

    result = await scheduler.trigger_job_manually("cleanup")

    job.assert_awaited_once()
    assert result["status"] == "success"
    assert result["job_id"] == "cleanup"


@pytest.mark.asyncio
async def test_manual_trigger_reports_failure():
    scheduler.register_job(
        "broken", AsyncMock(side_effect=RuntimeError("boom")), IntervalTrigger(hours=1)
    )

    result = await scheduler.trigger_job_manually("broken")

    assert result["status"] == "error"
    assert result["error"] == "boom"


@pytest.mark.asyncio
async def test_unknown_job_raises():
    with pytest.raises(ValueError):
        await scheduler.trigger_job_manually("missing")


@pytest.mark.asyncio
async def test_jobs_registered_before_start_are_scheduled():
    scheduler.register_job("cleanup", AsyncMock(), IntervalTrigger(hours=1))

    await scheduler.start_scheduler()
    try:
        jobs = scheduler.list_registered_jobs()
    finally:
        await scheduler.stop_scheduler()

    assert jobs[0]["job_id"] == "cleanup"
    assert jobs[0]["next_run_time"] is not None
