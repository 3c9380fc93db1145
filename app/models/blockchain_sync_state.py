"""
Blockchain sync state model.

Progress of an on-chain event stream scan (one row per stream).
"""

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class BlockchainSyncState(Base):
    """
    Scan progress of one event stream, e.g. CLAIM_EVENTS.

    last_synced_block only moves forward; a scan resumes at the block
    after it.
    """

    __tablename__ = "blockchain_sync_state"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sync_key: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )

    # Scanned block range
    first_synced_block: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_synced_block: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    events_indexed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Last scan failure, cleared by the next successful chunk
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

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
        return (
            f"<BlockchainSyncState(sync_key={self.sync_key!r}, "
            f"last_synced_block={self.last_synced_block})>"
        )
