"""Set the active treasury configuration.

Replaces the active reward program window. The daily budget is derived
from allocation and duration; the end date is start + duration.

Usage:
    python -m scripts.set_treasury_config --allocation 500000 --days 365 \
        --start 2026-01-01T00:00:00+00:00 --by ops
"""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime
from decimal import Decimal

from loguru import logger

from app.config.database import create_db_engine, create_session_maker
from app.config.settings import settings
from app.services.providers import DatabaseTreasuryConfigProvider
from app.utils.datetime_utils import ensure_utc, utc_now


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--allocation", type=Decimal, required=True)
    parser.add_argument("--days", type=int, required=True)
    parser.add_argument(
        "--start",
        type=datetime.fromisoformat,
        default=None,
        help="ISO start time (defaults to now, UTC)",
    )
    parser.add_argument("--by", default=None, help="Operator name for the audit trail")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    start = ensure_utc(args.start) if args.start else utc_now()

    engine = create_db_engine(settings)
    try:
        provider = DatabaseTreasuryConfigProvider(create_session_maker(engine))
        window = await provider.update_config(args.allocation, args.days, start, args.by)
    finally:
        await engine.dispose()

    logger.info(
        f"Treasury window {window.start_date.isoformat()} -> {window.end_date.isoformat()}, "
        f"daily budget {window.daily_budget}"
    )


if __name__ == "__main__":
    asyncio.run(main())
