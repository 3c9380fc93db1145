"""
Daily reward history model.

One row per position per calendar day with the factors used for that
day's latest calculation.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RatioType, UsdType


class DailyReward(Base):
    """Per-day reward snapshot for a position."""

    __tablename__ = "daily_rewards"
    __table_args__ = (
        UniqueConstraint("position_id", "reward_date", name="uq_daily_rewards_position_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reward_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    position_id: Mapped[int] = mapped_column(Integer, nullable=False)
    reward_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    position_value_usd: Mapped[Decimal] = mapped_column(UsdType, nullable=False)
    liquidity_weight: Mapped[Decimal] = mapped_column(RatioType, nullable=False)
    time_coefficient: Mapped[Decimal] = mapped_column(RatioType, nullable=False)
    in_range_multiplier: Mapped[Decimal] = mapped_column(RatioType, nullable=False)
    effective_apr: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    daily_reward_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    days_active: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
