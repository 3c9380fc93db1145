"""
Reward record model.

Ledger entry holding accrual state per position. Claimed amounts are not
tracked here; the claim contract is the source of truth for them.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType, RatioType, UsdType


class RewardRecord(Base):
    """
    RewardRecord entity.

    Created on the first eligible recalculation of a position and upserted
    on every pass afterwards.

    Attributes:
        id: Primary key
        position_id: Position this record accrues for (unique)
        user_id: Owning user
        user_address: Owner wallet address (lowercase)
        nft_id: Position NFT token ID
        daily_reward_amount: Latest computed daily reward (tokens)
        accumulated_amount: Total accrued (tokens), non-decreasing
        position_value_usd: USD value used for the latest calculation
        in_range_ratio: Time-weighted fraction of recent time in range
        effective_apr: Latest effective APR
        data_source: live / cached tag of the latest calculation
        is_active: Whether the position was eligible in the latest pass
        last_reward_calculation: When accrual was last applied
        created_at: First accrual
    """

    __tablename__ = "rewards"
    __table_args__ = (
        Index("idx_rewards_user_active", "user_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    position_id: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True, index=True
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    nft_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    daily_reward_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    accumulated_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    position_value_usd: Mapped[Decimal] = mapped_column(
        UsdType, nullable=False, default=Decimal("0")
    )
    in_range_ratio: Mapped[Decimal] = mapped_column(
        RatioType, nullable=False, default=Decimal("1")
    )
    effective_apr: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False, default=Decimal("0")
    )
    data_source: Mapped[str] = mapped_column(String(16), nullable=False, default="live")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_reward_calculation: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RewardRecord(position_id={self.position_id}, user_id={self.user_id}, "
            f"daily={self.daily_reward_amount}, accumulated={self.accumulated_amount})>"
        )
