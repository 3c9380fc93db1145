"""
LP position repository.

Data access layer for LpPosition model.
"""

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.lp_position import LpPosition
from app.repositories.base import BaseRepository


class LpPositionRepository(BaseRepository[LpPosition]):
    """Repository for registered LP positions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(LpPosition, session)

    async def get_eligible(self) -> list[LpPosition]:
        """
        Get all open, reward-eligible positions.

        Returns:
            Eligible positions ordered by ID
        """
        stmt = (
            select(LpPosition)
            .where(
                and_(
                    LpPosition.is_active == True,  # noqa: E712
                    LpPosition.reward_eligible == True,  # noqa: E712
                )
            )
            .order_by(LpPosition.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
