"""
Treasury configuration model.

Holds the program's total allocation and time window. The daily budget is
always derived from allocation and duration, never stored.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base
from app.models.types import MoneyType


class TreasuryConfig(Base):
    """Treasury configuration entity."""

    __tablename__ = "treasury_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total_allocation: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    program_duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    program_start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    program_end_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

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
            f"<TreasuryConfig(id={self.id}, allocation={self.total_allocation}, "
            f"days={self.program_duration_days}, active={self.is_active})>"
        )
