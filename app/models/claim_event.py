"""
Claim event model.

Indexed RewardClaimed events from the claim contract, with the block
timestamp of each claim.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import BigIntegerAmountType


class ClaimEvent(Base):
    """On-chain claim event."""

    __tablename__ = "claim_events"
    __table_args__ = (
        UniqueConstraint("tx_hash", "log_index", name="uq_claim_events_tx_log"),
        Index("idx_claim_events_user_time", "user_address", "claimed_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_address: Mapped[str] = mapped_column(String(42), nullable=False)
    amount_wei: Mapped[Decimal] = mapped_column(BigIntegerAmountType, nullable=False)
    nonce: Mapped[int] = mapped_column(BigInteger, nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    tx_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    log_index: Mapped[int] = mapped_column(Integer, nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
