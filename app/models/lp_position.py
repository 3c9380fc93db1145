"""
LP position model.

Registered liquidity positions eligible for the reward program. Rows are
maintained by the position registration flow; the reward engine reads them
as the persisted snapshot of each position.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import BigIntegerAmountType, UsdType


class LpPosition(Base):
    """
    LP position entity.

    Attributes:
        id: Primary key (position ID)
        user_id: Owning user
        user_address: Owner wallet address (lowercase)
        nft_id: Uniswap V3 position NFT token ID
        pool_address: Pool the position provides liquidity to
        value_usd: Last known USD value
        liquidity: Last known raw liquidity
        tick_lower: Lower tick bound
        tick_upper: Upper tick bound
        is_full_range: Whether the position spans the full tick range
        is_in_range: Last known in-range state
        is_active: Whether the position is still open
        reward_eligible: Whether the position participates in the program
        created_at: When liquidity was added
        updated_at: Last snapshot refresh
    """

    __tablename__ = "lp_positions"
    __table_args__ = (
        Index("idx_lp_positions_eligible", "is_active", "reward_eligible"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    nft_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    pool_address: Mapped[str] = mapped_column(String(42), nullable=False)

    value_usd: Mapped[Decimal] = mapped_column(
        UsdType, nullable=False, default=Decimal("0")
    )
    liquidity: Mapped[Decimal] = mapped_column(
        BigIntegerAmountType, nullable=False, default=Decimal("0")
    )
    tick_lower: Mapped[int] = mapped_column(Integer, nullable=False)
    tick_upper: Mapped[int] = mapped_column(Integer, nullable=False)
    is_full_range: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_in_range: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    reward_eligible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<LpPosition(id={self.id}, nft_id={self.nft_id}, "
            f"value_usd={self.value_usd}, active={self.is_active})>"
        )
