"""
Daily reward repository.

Data access layer for DailyReward history rows.
"""

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.daily_reward import DailyReward
from app.repositories.base import BaseRepository


class DailyRewardRepository(BaseRepository[DailyReward]):
    """Repository for per-day reward history."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(DailyReward, session)

    async def upsert_for_day(
        self, position_id: int, reward_date: date, **data: Any
    ) -> None:
        """
        Insert or overwrite the row of a position for one day.

        Later passes on the same day replace the factors with the latest ones.

        Args:
            position_id: Position ID
            reward_date: Calendar day (UTC)
            **data: Remaining column values
        """
        values = {"position_id": position_id, "reward_date": reward_date, **data}
        stmt = insert(DailyReward).values(**values)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_daily_rewards_position_date",
            set_={key: stmt.excluded[key] for key in data},
        )
        await self.session.execute(stmt)


    async def get_history(
        self, position_ids: list[int], since: date
    ) -> list[DailyReward]:
        """
        Get history rows of positions from a day onwards.

        Args:
            position_ids: Positions to include
            since: First calendar day (inclusive)

        Returns:
            Rows ordered newest day first, then by position
        """
        if not position_ids:
            return []

        stmt = (
            select(DailyReward)
            .where(
                DailyReward.position_id.in_(position_ids),
                DailyReward.reward_date >= since,
            )
            .order_by(DailyReward.reward_date.desc(), DailyReward.position_id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
