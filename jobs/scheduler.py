"""
Job scheduler.

Enqueues the reward actors on their intervals with APScheduler and serves
the health endpoints.
"""

import asyncio
from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import Settings, settings
from app.utils.datetime_utils import utc_now
from jobs.health import start_health_server, stop_health_server
from jobs.tasks import recalculate_rewards, sync_claim_events


def create_scheduler(config: Settings) -> AsyncIOScheduler:
    """
    Build the scheduler with both reward jobs.

    Claim event sync starts immediately so the claim lock has fresh data;
    the first recalculation runs one minute after start.
    """
    scheduler = AsyncIOScheduler(timezone="UTC")
    now = utc_now()

    scheduler.add_job(
        recalculate_rewards.send,
        "interval",
        hours=config.recalculation_interval_hours,
        id="reward_recalculation",
        name="Reward recalculation",
        next_run_time=now + timedelta(minutes=1),
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        sync_claim_events.send,
        "interval",
        minutes=config.claim_event_sync_interval_minutes,
        id="claim_event_sync",
        name="Claim event sync",
        next_run_time=now,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def run_scheduler() -> None:
    """Run the scheduler and health server until cancelled."""
    scheduler = create_scheduler(settings)
    scheduler.start()
    runner = await start_health_server(scheduler, port=settings.health_check_port)
    logger.info(
        f"Scheduler started: recalculation every {settings.recalculation_interval_hours}h, "
        f"claim sync every {settings.claim_event_sync_interval_minutes}m"
    )

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


def main() -> None:
    """Console entry point."""
    setup_logging("scheduler")
    try:
        asyncio.run(run_scheduler())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")


if __name__ == "__main__":
    main()
