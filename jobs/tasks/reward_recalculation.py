"""
Reward recalculation task.

Runs one recalculation pass over all eligible positions. Scheduled every
RECALCULATION_INTERVAL_HOURS; overlapping passes are prevented with a
Redis lock.
"""

import dramatiq
from loguru import logger
from redis.exceptions import LockError

from app.config.constants import DRAMATIQ_TIME_LIMIT_LONG
from app.config.settings import settings
from app.services.rewards.engine import RewardEngine
from app.utils.exceptions import RewardEngineError
from app.utils.redis_utils import create_redis_client
from jobs.async_runner import run_async, with_engine

LOCK_KEY = "reward_recalculation"
LOCK_TIMEOUT = DRAMATIQ_TIME_LIMIT_LONG // 1000


async def _recalculate(engine: RewardEngine) -> dict:
    report = await engine.recalculate()
    return {
        "success": True,
        "processed": report.processed,
        "skipped": report.skipped,
        "stale": report.stale,
        "deactivated": report.deactivated,
        "total_daily_rewards": str(report.total_daily_rewards),
        "total_active_liquidity": str(report.total_active_liquidity),
    }


async def _recalculate_rewards_async() -> dict:
    """Async implementation of the recalculation task."""
    redis_client = create_redis_client(settings)
    lock = redis_client.lock(LOCK_KEY, timeout=LOCK_TIMEOUT)
    try:
        if not await lock.acquire(blocking=False):
            logger.info("Recalculation pass already running, skipping")
            return {"success": True, "skipped_run": True}
        try:
            return await with_engine(_recalculate)
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning("Recalculation lock expired before the pass finished")
    finally:
        await redis_client.aclose()


@dramatiq.actor(max_retries=3, time_limit=DRAMATIQ_TIME_LIMIT_LONG)
def recalculate_rewards() -> None:
    """Recalculate daily rewards and accrue elapsed time into the ledger."""
    logger.info("Starting reward recalculation pass...")

    try:
        result = run_async(_recalculate_rewards_async())
    except RewardEngineError as e:
        logger.error(f"Reward recalculation failed: {e.code}: {e.message}")
        raise

    if result.get("skipped_run"):
        return

    logger.info(
        f"Reward recalculation complete: {result['processed']} processed, "
        f"{result['skipped']} skipped, {result['stale']} stale, "
        f"daily total {result['total_daily_rewards']}"
    )
