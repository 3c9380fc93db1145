"""
Treasury configuration repository.

Data access layer for TreasuryConfig model.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.treasury_config import TreasuryConfig
from app.repositories.base import BaseRepository


class TreasuryConfigRepository(BaseRepository[TreasuryConfig]):
    """Repository for treasury configuration."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(TreasuryConfig, session)

    async def get_active(self) -> TreasuryConfig | None:
        """Get the active configuration (latest if several are flagged)."""
        stmt = (
            select(TreasuryConfig)
            .where(TreasuryConfig.is_active == True)  # noqa: E712
            .order_by(TreasuryConfig.updated_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def deactivate_all(self) -> None:
        """Clear the active flag on every configuration."""
        await self.session.execute(
            update(TreasuryConfig)
            .where(TreasuryConfig.is_active == True)  # noqa: E712
            .values(is_active=False)
        )
