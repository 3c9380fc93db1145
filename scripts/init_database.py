#!/usr/bin/env python3
"""Create reward engine tables without alembic and report the treasury state.

Intended for local development; production schemas are managed with
`alembic upgrade head`.
"""

import asyncio
import sys

from loguru import logger

from app.config.database import create_db_engine, create_session_maker
from app.config.settings import settings
from app.models import Base
from app.repositories.treasury_config_repository import TreasuryConfigRepository

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create missing tables, then warn if no treasury window is active."""
    engine = create_db_engine(settings)
    try:
        async with engine.begin() as conn:
            logger.info("Creating reward engine tables (checkfirst=True)...")
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)

        async with create_session_maker(engine)() as session:
            active = await TreasuryConfigRepository(session).get_active()
    finally:
        await engine.dispose()

    logger.success(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    if active is None:
        logger.warning(
            "No active treasury configuration; run scripts/set_treasury_config.py "
            "before the first recalculation pass"
        )


if __name__ == "__main__":
    asyncio.run(init_database())
