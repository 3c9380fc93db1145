"""Reset the accrued rewards of a position.

Administrative correction: zeroes accumulated_amount of one ledger record.
Amounts already claimed on-chain are not affected.

Usage:
    python -m scripts.reset_position --position 42 --reason "duplicate NFT"
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from loguru import logger

from app.config.database import create_db_engine, create_session_maker
from app.config.settings import settings
from app.services.rewards.reward_ledger import RewardLedger


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--position", type=int, required=True, help="Position ID")
    parser.add_argument("--reason", required=True, help="Audit reason")
    return parser.parse_args()


async def main() -> int:
    args = parse_args()

    engine = create_db_engine(settings)
    try:
        async with create_session_maker(engine)() as session:
            record = await RewardLedger(session).reset_position(args.position, args.reason)
            await session.commit()
    finally:
        await engine.dispose()

    if record is None:
        logger.error(f"Position {args.position} has no ledger record")
        return 1

    logger.info(f"Position {args.position} reset")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
