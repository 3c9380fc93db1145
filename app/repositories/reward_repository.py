"""
Reward repository.

Data access layer for RewardRecord model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reward import RewardRecord
from app.repositories.base import BaseRepository


class RewardRepository(BaseRepository[RewardRecord]):
    """Repository for reward ledger records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(RewardRecord, session)

    async def get_by_position_for_update(
        self, position_id: int
    ) -> RewardRecord | None:
        """
        Get the record of a position with a row lock.

        Args:
            position_id: Position ID

        Returns:
            Locked record or None if the position has never accrued
        """
        return await self.get_for_update(position_id=position_id)

    async def get_by_address(self, user_address: str) -> list[RewardRecord]:
        """Get all records owned by a wallet address."""
        stmt = (
            select(RewardRecord)
            .where(RewardRecord.user_address == user_address.lower())
            .order_by(RewardRecord.position_id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def sum_accumulated_by_user(self, user_id: int) -> Decimal:
        """
        Get total accumulated rewards for a user.

        Args:
            user_id: User ID

        Returns:
            Sum of accumulated amounts (active and inactive positions)
        """
        stmt = select(
            func.coalesce(func.sum(RewardRecord.accumulated_amount), 0)
        ).where(RewardRecord.user_id == user_id)
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def sum_accumulated_by_address(self, user_address: str) -> Decimal:
        """Get total accumulated rewards for a wallet address."""
        stmt = select(
            func.coalesce(func.sum(RewardRecord.accumulated_amount), 0)
        ).where(RewardRecord.user_address == user_address.lower())
        result = await self.session.execute(stmt)
        return Decimal(str(result.scalar() or 0))

    async def deactivate_except(self, active_position_ids: list[int]) -> int:
        """
        Mark records inactive when their position left the eligible set.

        Args:
            active_position_ids: Positions processed in the current pass

        Returns:
            Number of records deactivated
        """
        stmt = update(RewardRecord).where(RewardRecord.is_active == True)  # noqa: E712
        if active_position_ids:
            stmt = stmt.where(RewardRecord.position_id.not_in(active_position_ids))
        result = await self.session.execute(stmt.values(is_active=False))
        return result.rowcount or 0

    async def get_pool_totals(self, day_start: datetime) -> dict[str, Decimal | int]:
        """
        Aggregate pool-wide ledger statistics.

        Args:
            day_start: Start of the current UTC day

        Returns:
            Dict with total_active_liquidity, active_participants,
            daily_distributed and distributed_to_date
        """
        active = RewardRecord.is_active == True  # noqa: E712
        stmt = select(
            func.coalesce(
                func.sum(RewardRecord.position_value_usd).filter(active), 0
            ),
            func.count(func.distinct(RewardRecord.user_id)).filter(active),
            func.coalesce(
                func.sum(RewardRecord.daily_reward_amount).filter(
                    and_(active, RewardRecord.last_reward_calculation >= day_start)
                ),
                0,
            ),
            func.coalesce(func.sum(RewardRecord.accumulated_amount), 0),
        )
        result = await self.session.execute(stmt)
        liquidity, participants, daily, distributed = result.one()
        return {
            "total_active_liquidity": Decimal(str(liquidity or 0)),
            "active_participants": int(participants or 0),
            "daily_distributed": Decimal(str(daily or 0)),
            "distributed_to_date": Decimal(str(distributed or 0)),
        }
