"""
Program metrics aggregator.

Read-side pool statistics over the reward ledger. Never mutates and
never locks.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import DAYS_PER_YEAR
from app.repositories.reward_repository import RewardRepository
from app.services.rewards.types import DataSource, ProgramMetrics, TreasuryWindow
from app.utils.datetime_utils import start_of_day


class ProgramMetricsAggregator:
    """Builds ProgramMetrics from ledger totals and the treasury window."""

    def __init__(self, session: AsyncSession) -> None:
        self.reward_repo = RewardRepository(session)

    @staticmethod
    def build(
        window: TreasuryWindow,
        totals: dict[str, Decimal | int],
        now: datetime,
        data_source: DataSource = DataSource.LIVE,
    ) -> ProgramMetrics:
        """
        Combine ledger totals with the treasury window.

        Args:
            window: Treasury window
            totals: Output of RewardRepository.get_pool_totals
            now: Reference time for days remaining
            data_source: Provenance of the window

        Returns:
            ProgramMetrics; APR is 0 when there is no active liquidity
        """
        liquidity = Decimal(totals.get("total_active_liquidity", 0))
        daily = Decimal(totals.get("daily_distributed", 0))
        distributed = Decimal(totals.get("distributed_to_date", 0))

        average_apr = Decimal("0")
        if liquidity > 0:
            average_apr = daily * DAYS_PER_YEAR / liquidity

        return ProgramMetrics(
            total_active_liquidity=liquidity,
            active_participants=int(totals.get("active_participants", 0)),
            daily_distributed=daily,
            distributed_to_date=distributed,
            treasury_remaining=max(Decimal("0"), window.total_allocation - distributed),
            days_remaining=window.days_remaining(now),
            average_apr=average_apr,
            daily_budget=window.daily_budget,
            program_start=window.start_date,
            program_end=window.end_date,
            data_source=data_source,
        )

    async def aggregate(
        self,
        window: TreasuryWindow,
        now: datetime,
        data_source: DataSource = DataSource.LIVE,
    ) -> ProgramMetrics:
        """Read ledger totals for today and build metrics."""
        totals = await self.reward_repo.get_pool_totals(start_of_day(now))
        return self.build(window, totals, now, data_source)
