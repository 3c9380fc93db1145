"""
Reward ledger.

Persists per-position accrual. The accumulated amount only grows; claims
are tracked on-chain and subtracted live by the claim service.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import SECONDS_PER_DAY
from app.models.daily_reward import DailyReward
from app.models.reward import RewardRecord
from app.repositories.daily_reward_repository import DailyRewardRepository
from app.repositories.reward_repository import RewardRepository
from app.services.rewards.types import PositionSnapshot, RewardCalculation


class RewardLedger:
    """Accrual ledger bound to one database session."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger.

        Args:
            session: Database session (caller commits)
        """
        self.session = session
        self.reward_repo = RewardRepository(session)
        self.daily_repo = DailyRewardRepository(session)
        self._log = logger.bind(service="RewardLedger")

    @staticmethod
    def accrual_for(
        daily_reward: Decimal,
        last_calculation: datetime,
        now: datetime,
        accrue_until: datetime | None = None,
    ) -> Decimal:
        """
        Amount accrued between the last calculation and now.

        Args:
            daily_reward: Daily reward rate (tokens/day)
            last_calculation: End of the previous accrual period
            now: Current time
            accrue_until: Hard stop (program end); accrual never passes it

        Returns:
            elapsed_days * daily_reward, 0 for non-positive elapsed time
        """
        end = min(now, accrue_until) if accrue_until is not None else now
        elapsed = end - last_calculation
        if elapsed <= timedelta(0) or daily_reward <= 0:
            return Decimal("0")
        elapsed_days = Decimal(str(elapsed.total_seconds())) / SECONDS_PER_DAY
        return elapsed_days * daily_reward

    async def upsert(
        self,
        position: PositionSnapshot,
        calculation: RewardCalculation,
        now: datetime,
        accrue_until: datetime | None = None,
    ) -> RewardRecord:
        """
        Apply one calculation to the position's ledger record.

        The first eligible cycle credits one full day. Later cycles credit
        the fraction of a day elapsed since the previous one, so repeating
        a pass with no elapsed time changes nothing.

        Args:
            position: Position snapshot used for the calculation
            calculation: Result from RewardCalculator
            now: Pass time
            accrue_until: Program end; no accrual is credited beyond it

        Returns:
            Updated (or created) record
        """
        record = await self.reward_repo.get_by_position_for_update(position.position_id)

        if record is None:
            window_open = accrue_until is None or now < accrue_until
            initial = calculation.daily_reward if window_open else Decimal("0")
            record = await self.reward_repo.create(
                position_id=position.position_id,
                user_id=position.user_id,
                user_address=position.user_address.lower(),
                nft_id=position.nft_id,
                daily_reward_amount=calculation.daily_reward,
                accumulated_amount=initial,
                position_value_usd=position.value_usd,
                in_range_ratio=calculation.in_range_ratio,
                effective_apr=calculation.effective_apr,
                data_source=calculation.data_source.value,
                is_active=True,
                last_reward_calculation=now,
                created_at=now,
            )
            self._log.info(
                f"Ledger record created for position {position.position_id}",
                extra={
                    "position_id": position.position_id,
                    "daily_reward": str(calculation.daily_reward),
                },
            )
        else:
            accrued = self.accrual_for(
                calculation.daily_reward,
                record.last_reward_calculation,
                now,
                accrue_until,
            )
            record.accumulated_amount = (record.accumulated_amount or Decimal("0")) + accrued
            record.daily_reward_amount = calculation.daily_reward
            record.position_value_usd = position.value_usd
            record.in_range_ratio = calculation.in_range_ratio
            record.effective_apr = calculation.effective_apr
            record.data_source = calculation.data_source.value
            record.is_active = True
            if now > record.last_reward_calculation:
                record.last_reward_calculation = now
            await self.session.flush()

        await self.daily_repo.upsert_for_day(
            position.position_id,
            now.date(),
            reward_id=record.id,
            user_id=position.user_id,
            position_value_usd=position.value_usd,
            liquidity_weight=calculation.liquidity_weight,
            time_coefficient=calculation.time_coefficient,
            in_range_multiplier=calculation.in_range_multiplier,
            effective_apr=calculation.effective_apr,
            daily_reward_amount=calculation.daily_reward,
            days_active=calculation.days_active,
        )
        return record

    async def get_record(self, position_id: int) -> RewardRecord | None:
        """Get the ledger record of a position."""
        return await self.reward_repo.get_by(position_id=position_id)

    async def total_accumulated(self, user_id: int) -> Decimal:
        """Total accrued for a user across all positions."""
        return await self.reward_repo.sum_accumulated_by_user(user_id)

    async def total_accumulated_for_address(self, user_address: str) -> Decimal:
        """Total accrued for a wallet address across all positions."""
        return await self.reward_repo.sum_accumulated_by_address(user_address)

    async def records_for_address(self, user_address: str) -> list[RewardRecord]:
        """Ledger records of a wallet address."""
        return await self.reward_repo.get_by_address(user_address)

    async def history_for_address(
        self, user_address: str, since: date
    ) -> list[DailyReward]:
        """Daily reward rows of all positions of a wallet since a day."""
        records = await self.reward_repo.get_by_address(user_address)
        return await self.daily_repo.get_history([r.position_id for r in records], since)

    async def deactivate_missing(self, active_position_ids: list[int]) -> int:
        """
        Stop counting positions that left the eligible set.

        Their accumulated amount stays claimable.

        Returns:
            Number of records deactivated
        """
        count = await self.reward_repo.deactivate_except(active_position_ids)
        if count:
            self._log.info(
                f"Deactivated {count} ledger records no longer eligible",
                extra={"deactivated": count},
            )
        return count

    async def reset_position(self, position_id: int, reason: str) -> RewardRecord | None:
        """
        Zero the accrual of a position.

        Administrative correction; the only path that lowers
        accumulated_amount.

        Args:
            position_id: Position to reset
            reason: Audit reason, logged

        Returns:
            Reset record or None if the position has no record
        """
        record = await self.reward_repo.get_by_position_for_update(position_id)
        if record is None:
            return None

        previous = record.accumulated_amount
        record.accumulated_amount = Decimal("0")
        record.daily_reward_amount = Decimal("0")
        await self.session.flush()

        self._log.warning(
            f"Ledger reset for position {position_id}: {reason}",
            extra={
                "position_id": position_id,
                "previous_accumulated": str(previous),
                "reason": reason,
            },
        )
        return record
