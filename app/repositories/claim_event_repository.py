"""
Claim event repository.

Data access layer for indexed on-chain claim events.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.claim_event import ClaimEvent
from app.repositories.base import BaseRepository


class ClaimEventRepository(BaseRepository[ClaimEvent]):
    """Repository for claim events."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ClaimEvent, session)

    async def add_if_missing(self, **data: Any) -> bool:
        """
        Insert an event unless (tx_hash, log_index) is already indexed.

        Returns:
            True if a row was inserted
        """
        stmt = (
            insert(ClaimEvent)
            .values(**data)
            .on_conflict_do_nothing(constraint="uq_claim_events_tx_log")
        )
        result = await self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    async def get_last_claim_time(self, user_address: str) -> datetime | None:
        """Get the block timestamp of the latest claim of an address."""
        stmt = select(func.max(ClaimEvent.claimed_at)).where(
            ClaimEvent.user_address == user_address.lower()
        )
        result = await self.session.execute(stmt)
        return result.scalar()

    async def sum_amount_for_address(self, user_address: str) -> int:
        """Total indexed claim amount of an address (wei)."""
        stmt = select(func.coalesce(func.sum(ClaimEvent.amount_wei), 0)).where(
            ClaimEvent.user_address == user_address.lower()
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
