"""
Integration tests for the scheduler health server.
"""

from unittest.mock import MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from jobs.health import create_health_app


def _scheduler(running: bool) -> MagicMock:
    job = MagicMock()
    job.id = "reward_recalculation"
    job.name = "Reward recalculation"
    job.next_run_time = None
    scheduler = MagicMock()
    scheduler.running = running
    scheduler.get_jobs.return_value = [job]
    return scheduler


class TestHealthServer:
    """Test health, readiness and liveness endpoints."""

    @pytest.mark.asyncio
    async def test_running_scheduler_is_healthy(self):
        """A running scheduler reports its jobs."""
        app = create_health_app(_scheduler(running=True))

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/health")
            body = await resp.json()

        assert resp.status == 200
        assert body["jobs"][0]["id"] == "reward_recalculation"

    @pytest.mark.asyncio
    async def test_stopped_scheduler_is_not_ready(self):
        """A stopped scheduler fails readiness."""
        app = create_health_app(_scheduler(running=False))

        async with TestClient(TestServer(app)) as client:
            resp = await client.get("/readiness")

        assert resp.status == 503

    @pytest.mark.asyncio
    async def test_missing_scheduler(self):
        """No scheduler is unhealthy but alive."""
        app = create_health_app(None)

        async with TestClient(TestServer(app)) as client:
            health = await client.get("/health")
            liveness = await client.get("/liveness")

        assert health.status == 503
        assert liveness.status == 200
