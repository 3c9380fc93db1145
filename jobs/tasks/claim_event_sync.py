"""
Claim event sync task.

Indexes new RewardClaimed events so the claim lock is measured from the
on-chain claim time.
"""

import dramatiq
from loguru import logger

from app.config.constants import DRAMATIQ_TIME_LIMIT_MEDIUM
from app.services.rewards.engine import RewardEngine
from app.utils.exceptions import UpstreamDataError
from jobs.async_runner import run_async, with_engine


async def _sync(engine: RewardEngine) -> int:
    return await engine.sync_claim_events()


@dramatiq.actor(max_retries=3, time_limit=DRAMATIQ_TIME_LIMIT_MEDIUM)
def sync_claim_events() -> None:
    """Index claim events up to the chain head."""
    try:
        indexed = run_async(with_engine(_sync))
    except UpstreamDataError as e:
        logger.warning(f"Claim event sync failed, will retry: {e.message}")
        raise

    if indexed:
        logger.info(f"Claim event sync complete: {indexed} new events")
    else:
        logger.debug("Claim event sync complete: no new events")
